from __future__ import annotations

from typing import Any, Protocol

from app.schemas.applications import Application, Candidate, CandidateWithApplication, Job, JobCreate


class Storage(Protocol):
    async def list_jobs(self) -> list[Job]: ...

    async def get_job(self, job_id: str) -> Job | None: ...

    async def create_job(self, job: JobCreate) -> Job: ...

    async def get_candidate(self, candidate_id: str) -> Candidate | None: ...

    async def create_candidate(self, fields: dict[str, Any]) -> Candidate: ...

    async def list_candidates_with_applications(self) -> list[CandidateWithApplication]: ...

    async def get_application(self, application_id: str) -> Application | None: ...

    async def list_applications(self) -> list[Application]: ...

    async def list_applications_by_job(self, job_id: str) -> list[Application]: ...

    async def create_application(self, fields: dict[str, Any]) -> Application: ...

    async def update_application(self, application_id: str, fields: dict[str, Any]) -> Application | None: ...
