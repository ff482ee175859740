from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel

NotificationType = Literal["candidate_applied", "interview_scheduled", "high_score", "system"]

MAX_NOTIFICATIONS = 50


class CandidateNotification(BaseModel):
    id: str
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    read: bool = False
    candidate_name: str | None = None
    match_score: int | None = None


class NotificationRegistry:
    """Bounded recruiter activity feed. Newest entries first."""

    def __init__(self, max_items: int = MAX_NOTIFICATIONS):
        self._max_items = max_items
        self._items: list[CandidateNotification] = []
        self._lock = threading.Lock()

    def add(
        self,
        *,
        type: NotificationType,
        title: str,
        message: str,
        candidate_name: str | None = None,
        match_score: int | None = None,
    ) -> CandidateNotification:
        notification = CandidateNotification(
            id=uuid.uuid4().hex,
            type=type,
            title=title,
            message=message,
            created_at=datetime.now(timezone.utc),
            candidate_name=candidate_name,
            match_score=match_score,
        )
        with self._lock:
            self._items.insert(0, notification)
            del self._items[self._max_items :]
        return notification

    def create_candidate_notification(self, candidate_name: str, job_title: str, match_score: int) -> CandidateNotification:
        if match_score >= 90:
            title = "Exceptional Candidate!"
            message = f"{candidate_name} scored {match_score}% for {job_title} - Highly recommended!"
            kind: NotificationType = "high_score"
        elif match_score >= 80:
            title = "Strong Candidate"
            message = f"{candidate_name} scored {match_score}% for {job_title} - Great fit!"
            kind = "high_score"
        elif match_score >= 70:
            title = "Qualified Candidate"
            message = f"{candidate_name} applied for {job_title} and meets requirements"
            kind = "candidate_applied"
        else:
            title = "New Application"
            message = f"{candidate_name} applied for {job_title}"
            kind = "candidate_applied"
        return self.add(
            type=kind,
            title=title,
            message=message,
            candidate_name=candidate_name,
            match_score=match_score,
        )

    def recent(self) -> list[CandidateNotification]:
        with self._lock:
            return list(self._items)
