from fastapi import APIRouter

router = APIRouter()


@router.get("/health", summary="Health Check", description="Report that the screening API is up.")
async def health_check():
    return {"status": "healthy"}
