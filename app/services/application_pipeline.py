from __future__ import annotations

import asyncio
import enum
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from app.parsing.models import ExtractedDocument
from app.parsing.parse import extract_document
from app.parsing.signatures import resolve_kind
from app.schemas.applications import (
    Application,
    ApplicationWithJob,
    Candidate,
    Job,
    ScoringResult,
    UploadResumeResponse,
)
from app.services.errors import (
    ApplicationNotFound,
    ContentImplausible,
    DocumentExtractionError,
    JobNotFound,
    PipelineError,
    ProcessingFailed,
    ResumeUnreadable,
)
from app.services.fit_scorer import FitScorer
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.notification_registry import NotificationRegistry
from app.storage.base import Storage

logger = logging.getLogger(__name__)

QUALIFY_THRESHOLD = 70
INTERVIEW_DELAY = timedelta(hours=24)
AUTO_INTERVIEW_LABEL = "Tomorrow at 2:00 PM"
MANUAL_INTERVIEW_LABEL = "To be scheduled"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PipelineState(str, enum.Enum):
    RECEIVED = "received"
    EXTRACTED = "extracted"
    SCORED = "scored"
    DECIDED = "decided"
    NOTIFIED = "notified"
    PERSISTED = "persisted"
    COMPLETE = "complete"
    FAILED = "failed"


class Decision(str, enum.Enum):
    QUALIFY = "qualify"
    REJECT = "reject"


def decide(match_score: int) -> Decision:
    return Decision.QUALIFY if match_score >= QUALIFY_THRESHOLD else Decision.REJECT


def usable_email(value: str | None) -> bool:
    return bool(value and _EMAIL_RE.match(value.strip()))


@dataclass(frozen=True)
class ResumeUpload:
    content: bytes
    filename: str
    content_type: str | None
    job_id: str
    candidate_name: str | None = None
    candidate_email: str | None = None


@dataclass
class _NotificationPlan:
    interview_scheduled: bool = False
    interview_date: datetime | None = None
    email_attempted: bool = False
    email_sent: bool = False


class ApplicationPipeline:
    """Upload -> extract -> score -> decide -> notify -> persist, one request at a time.

    Holds only collaborators; no per-request state lives on the instance.
    """

    def __init__(
        self,
        storage: Storage,
        scorer: FitScorer,
        dispatcher: NotificationDispatcher,
        registry: NotificationRegistry | None = None,
    ):
        self._storage = storage
        self._scorer = scorer
        self._dispatcher = dispatcher
        self._registry = registry

    @staticmethod
    def _advance(run_id: str, state: PipelineState, **fields: Any) -> PipelineState:
        extra = " ".join(f"{key}={value}" for key, value in fields.items())
        logger.info("pipeline_state run=%s state=%s %s", run_id, state.value, extra)
        return state

    async def _extract(self, upload: ResumeUpload) -> ExtractedDocument:
        try:
            kind = resolve_kind(upload.filename, upload.content_type)
            document = await asyncio.to_thread(extract_document, upload.content, kind)
            if not document.is_valid:
                raise ContentImplausible(f"only {len(document.text)} chars with too few resume markers")
        except ContentImplausible as exc:
            logger.warning("resume_implausible filename=%s: %s", upload.filename, exc)
            raise ResumeUnreadable(
                "Resume is unreadable: the content does not look like a resume. "
                "Please upload a complete resume document."
            ) from exc
        except DocumentExtractionError as exc:
            logger.warning("resume_unreadable filename=%s: %s", upload.filename, exc)
            raise ResumeUnreadable() from exc
        return document

    async def _notify(
        self,
        decision: Decision,
        name: str,
        email: str,
        job: Job,
        analysis: ScoringResult,
    ) -> _NotificationPlan:
        plan = _NotificationPlan()
        if not usable_email(email):
            logger.info("notification_skipped reason=no_usable_email")
            return plan

        plan.email_attempted = True
        if decision is Decision.QUALIFY:
            # Scheduled before the send is confirmed; a failed invite keeps the slot.
            plan.interview_scheduled = True
            plan.interview_date = datetime.now(timezone.utc) + INTERVIEW_DELAY
            plan.email_sent = await self._dispatcher.send_interview_invite(
                name,
                email,
                job.title,
                AUTO_INTERVIEW_LABEL,
                analysis.interview_questions,
            )
        else:
            plan.email_sent = await self._dispatcher.send_rejection(name, email, job.title)
        return plan

    async def _persist(
        self,
        *,
        upload: ResumeUpload,
        document: ExtractedDocument,
        name: str,
        email: str,
        job: Job,
        analysis: ScoringResult,
        decision: Decision,
        plan: _NotificationPlan,
    ) -> tuple[Candidate, Application]:
        candidate = await self._storage.create_candidate(
            {
                "name": name,
                "email": email,
                "phone": document.contact.phone,
                "resume_filename": upload.filename,
                "resume_text": document.text,
            }
        )
        application = await self._storage.create_application(
            {
                "candidate_id": candidate.id,
                "job_id": job.id,
                "match_score": analysis.match_score,
                "strengths": analysis.strengths,
                "weaknesses": analysis.weaknesses,
                "ai_summary": analysis.summary,
                "interview_questions": analysis.interview_questions,
                "status": "qualified" if decision is Decision.QUALIFY else "rejected",
            }
        )
        if plan.interview_scheduled:
            application = await self._storage.update_application(
                application.id,
                {"interview_scheduled": True, "interview_date": plan.interview_date},
            ) or application
        if plan.email_attempted:
            application = await self._storage.update_application(
                application.id,
                {"email_sent": plan.email_sent},
            ) or application
        return candidate, application

    def _emit_registry_event(self, name: str, job: Job, match_score: int) -> None:
        if self._registry is None:
            return
        try:
            self._registry.create_candidate_notification(name, job.title, match_score)
        except Exception:  # noqa: BLE001 - the feed must not break uploads
            logger.warning("notification_registry_emit_failed", exc_info=True)

    async def run(self, upload: ResumeUpload) -> UploadResumeResponse:
        run_id = uuid.uuid4().hex[:12]
        self._advance(run_id, PipelineState.RECEIVED, filename=upload.filename, bytes=len(upload.content))
        try:
            job = await self._storage.get_job(upload.job_id)
            if job is None:
                raise JobNotFound()

            document = await self._extract(upload)
            self._advance(run_id, PipelineState.EXTRACTED, chars=len(document.text))

            outcome = await self._scorer.evaluate(document.text, job.description)
            analysis = outcome.result
            self._advance(
                run_id,
                PipelineState.SCORED,
                match_score=analysis.match_score,
                fallback=outcome.fallback_used,
                attempts=outcome.attempts,
            )

            decision = decide(analysis.match_score)
            self._advance(run_id, PipelineState.DECIDED, decision=decision.value)

            name = (upload.candidate_name or "").strip() or document.contact.name or "Unknown"
            email = (upload.candidate_email or "").strip() or document.contact.email or ""
            plan = await self._notify(decision, name, email, job, analysis)
            self._advance(run_id, PipelineState.NOTIFIED, email_sent=plan.email_sent)

            candidate, application = await self._persist(
                upload=upload,
                document=document,
                name=name,
                email=email,
                job=job,
                analysis=analysis,
                decision=decision,
                plan=plan,
            )
            self._advance(run_id, PipelineState.PERSISTED, application=application.id)
        except PipelineError as exc:
            self._advance(run_id, PipelineState.FAILED, status=exc.status_code)
            raise
        except Exception as exc:
            logger.exception("pipeline_unexpected_failure run=%s", run_id)
            self._advance(run_id, PipelineState.FAILED, status=500)
            raise ProcessingFailed() from exc

        self._emit_registry_event(name, job, analysis.match_score)
        self._advance(run_id, PipelineState.COMPLETE)
        return UploadResumeResponse(
            candidate=candidate,
            application=ApplicationWithJob(**application.model_dump(), job=job),
            analysis=analysis,
        )

    # -- manual recruiter actions

    async def _load_application(self, application_id: str) -> tuple[Application, Candidate, Job]:
        application = await self._storage.get_application(application_id)
        if application is None:
            raise ApplicationNotFound()
        candidate = await self._storage.get_candidate(application.candidate_id)
        job = await self._storage.get_job(application.job_id)
        if candidate is None or job is None:
            raise ApplicationNotFound("Candidate or job not found")
        return application, candidate, job

    async def schedule_interview(self, application_id: str, interview_date: datetime) -> Application:
        application = await self._storage.update_application(
            application_id,
            {
                "interview_scheduled": True,
                "interview_date": interview_date,
                "status": "interview_scheduled",
            },
        )
        if application is None:
            raise ApplicationNotFound()
        return application

    async def send_invite(self, application_id: str) -> bool:
        application, candidate, job = await self._load_application(application_id)
        success = False
        if usable_email(candidate.email):
            success = await self._dispatcher.send_interview_invite(
                candidate.name,
                candidate.email,
                job.title,
                MANUAL_INTERVIEW_LABEL,
                application.interview_questions,
            )
        await self._storage.update_application(application_id, {"email_sent": success, "status": "invited"})
        return success

    async def reject(self, application_id: str) -> bool:
        _, candidate, job = await self._load_application(application_id)
        success = False
        if usable_email(candidate.email):
            success = await self._dispatcher.send_rejection(candidate.name, candidate.email, job.title)
        await self._storage.update_application(application_id, {"status": "rejected", "email_sent": success})
        return success
