from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.dependencies import get_storage
from app.schemas.applications import Candidate, CandidateWithApplication, DashboardStats
from app.services.dashboard import compute_dashboard_stats
from app.services.errors import CandidateNotFound
from app.storage.base import Storage

router = APIRouter()


@router.get("/candidates", response_model=list[CandidateWithApplication])
async def list_candidates(storage: Storage = Depends(get_storage)):
    return await storage.list_candidates_with_applications()


@router.get("/candidates/{candidate_id}", response_model=Candidate)
async def get_candidate(candidate_id: str, storage: Storage = Depends(get_storage)):
    candidate = await storage.get_candidate(candidate_id)
    if candidate is None:
        raise CandidateNotFound()
    return candidate


@router.get("/dashboard-stats", response_model=DashboardStats)
async def dashboard_stats(storage: Storage = Depends(get_storage)):
    applications = await storage.list_applications()
    jobs = await storage.list_jobs()
    return compute_dashboard_stats(applications, jobs)
