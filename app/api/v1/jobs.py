from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.dependencies import get_storage
from app.schemas.applications import Application, Job, JobCreate
from app.services.errors import JobNotFound
from app.storage.base import Storage

router = APIRouter()


@router.get("/jobs", response_model=list[Job])
async def list_jobs(storage: Storage = Depends(get_storage)):
    return await storage.list_jobs()


@router.post("/jobs", response_model=Job)
async def create_job(payload: JobCreate, storage: Storage = Depends(get_storage)):
    return await storage.create_job(payload)


@router.get("/jobs/{job_id}", response_model=Job)
async def get_job(job_id: str, storage: Storage = Depends(get_storage)):
    job = await storage.get_job(job_id)
    if job is None:
        raise JobNotFound()
    return job


@router.get("/jobs/{job_id}/applications", response_model=list[Application])
async def list_job_applications(job_id: str, storage: Storage = Depends(get_storage)):
    if await storage.get_job(job_id) is None:
        raise JobNotFound()
    return await storage.list_applications_by_job(job_id)
