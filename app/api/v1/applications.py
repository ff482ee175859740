from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from app.core.config import settings
from app.core.dependencies import get_pipeline
from app.core.rate_limit import rate_limit
from app.schemas.applications import (
    ActionResponse,
    Application,
    ErrorResponse,
    ScheduleInterviewRequest,
    UploadResumeResponse,
)
from app.services.application_pipeline import ApplicationPipeline, ResumeUpload
from app.services.errors import PipelineError

router = APIRouter()

_READ_CHUNK_BYTES = 1024 * 64


async def _read_limited(file: UploadFile, max_mb: int) -> bytes:
    max_bytes = max_mb * 1024 * 1024
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise PipelineError(
                f"File too large. Maximum allowed size is {max_mb} MB.",
                status_code=413,
            )
        chunks.append(chunk)
    return b"".join(chunks)


async def process_upload(
    pipeline: ApplicationPipeline,
    resume: UploadFile | None,
    *,
    job_id: str | None,
    candidate_name: str | None,
    candidate_email: str | None,
    max_upload_mb: int,
) -> UploadResumeResponse:
    """Validate the form, run the pipeline and release the upload on every exit path."""
    try:
        if resume is None:
            raise PipelineError("No file uploaded", status_code=400)
        if not (job_id or "").strip():
            raise PipelineError("Job ID is required", status_code=400)

        payload = await _read_limited(resume, max_upload_mb)
        return await pipeline.run(
            ResumeUpload(
                content=payload,
                filename=resume.filename or "resume",
                content_type=resume.content_type,
                job_id=job_id.strip(),
                candidate_name=candidate_name,
                candidate_email=candidate_email,
            )
        )
    finally:
        if resume is not None:
            await resume.close()


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/upload-resume", response_model=UploadResumeResponse, responses=_ERROR_RESPONSES)
@rate_limit()
async def upload_resume(
    request: Request,
    resume: UploadFile | None = File(None),
    job_id: str | None = Form(None, alias="jobId"),
    candidate_name: str | None = Form(None, alias="candidateName"),
    candidate_email: str | None = Form(None, alias="candidateEmail"),
    pipeline: ApplicationPipeline = Depends(get_pipeline),
):
    return await process_upload(
        pipeline,
        resume,
        job_id=job_id,
        candidate_name=candidate_name,
        candidate_email=candidate_email,
        max_upload_mb=settings.max_upload_mb,
    )


@router.post("/applications/{application_id}/schedule-interview", response_model=Application)
async def schedule_interview(
    application_id: str,
    payload: ScheduleInterviewRequest,
    pipeline: ApplicationPipeline = Depends(get_pipeline),
):
    return await pipeline.schedule_interview(application_id, payload.interview_date)


@router.post("/applications/{application_id}/send-invite", response_model=ActionResponse)
async def send_invite(application_id: str, pipeline: ApplicationPipeline = Depends(get_pipeline)):
    return ActionResponse(success=await pipeline.send_invite(application_id))


@router.post("/applications/{application_id}/reject", response_model=ActionResponse)
async def reject(application_id: str, pipeline: ApplicationPipeline = Depends(get_pipeline)):
    return ActionResponse(success=await pipeline.reject(application_id))
