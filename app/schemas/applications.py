from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SUMMARY_MIN_CHARS = 50

ApplicationStatus = Literal["qualified", "rejected", "invited", "interview_scheduled", "pending"]
JobType = Literal["full-time", "part-time", "contract", "internship"]
JobStatus = Literal["active", "paused", "closed"]


class ScoringResult(BaseModel):
    """Resume-to-job fit produced by the AI judge (or the fixed fallback)."""

    model_config = ConfigDict(frozen=True)

    match_score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(min_length=1)
    weaknesses: list[str] = Field(min_length=1)
    summary: str = Field(min_length=SUMMARY_MIN_CHARS)
    interview_questions: list[str] = Field(default_factory=list)

    @field_validator("strengths", "weaknesses", "interview_questions")
    @classmethod
    def _strip_items(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]

    @field_validator("strengths", "weaknesses")
    @classmethod
    def _require_items(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one non-blank entry is required")
        return value


class JudgeScoringResponse(BaseModel):
    """Exact reply shape requested from the AI judge."""

    model_config = ConfigDict(extra="forbid")

    match_score: int = Field(ge=0, le=100)
    strengths: list[str] = Field(min_length=2, max_length=5)
    weaknesses: list[str] = Field(min_length=2, max_length=5)
    summary: str = Field(min_length=SUMMARY_MIN_CHARS)
    interview_questions: list[str] = Field(min_length=3, max_length=4)


class JobCreate(BaseModel):
    title: str = Field(min_length=2, max_length=200)
    description: str = Field(min_length=10, max_length=20000)
    requirements: str = Field(default="", max_length=20000)
    location: str | None = Field(default=None, max_length=200)
    type: JobType = "full-time"
    status: JobStatus = "active"


class Job(JobCreate):
    id: str
    created_at: datetime


class Candidate(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str | None = None
    resume_filename: str | None = None
    resume_text: str | None = None
    status: str = "pending"
    created_at: datetime


class Application(BaseModel):
    id: str
    candidate_id: str
    job_id: str
    match_score: int | None = None
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    ai_summary: str | None = None
    interview_questions: list[str] = Field(default_factory=list)
    status: ApplicationStatus = "pending"
    interview_scheduled: bool = False
    interview_date: datetime | None = None
    email_sent: bool = False
    created_at: datetime


class ApplicationWithJob(Application):
    job: Job


class CandidateWithApplication(Candidate):
    application: ApplicationWithJob | None = None


class DashboardStats(BaseModel):
    total_applications: int
    shortlisted: int
    interviews: int
    avg_score: int
    active_jobs: int


class UploadResumeResponse(BaseModel):
    candidate: Candidate
    application: ApplicationWithJob
    analysis: ScoringResult


class ScheduleInterviewRequest(BaseModel):
    interview_date: datetime


class ActionResponse(BaseModel):
    success: bool


class ErrorResponse(BaseModel):
    message: str
