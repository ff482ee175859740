from __future__ import annotations

import math
from typing import Sequence

from app.schemas.applications import Application, DashboardStats, Job

SHORTLISTED_STATUSES = {"qualified", "interview_scheduled"}


def compute_dashboard_stats(applications: Sequence[Application], jobs: Sequence[Job]) -> DashboardStats:
    """Recruiter headline numbers; unscored applications count as 0 in the average."""
    total = len(applications)
    avg_score = 0
    if total:
        mean = sum(application.match_score or 0 for application in applications) / total
        # Halves round up.
        avg_score = math.floor(mean + 0.5)
    return DashboardStats(
        total_applications=total,
        shortlisted=sum(1 for application in applications if application.status in SHORTLISTED_STATUSES),
        interviews=sum(1 for application in applications if application.interview_scheduled),
        avg_score=avg_score,
        active_jobs=sum(1 for job in jobs if job.status == "active"),
    )
