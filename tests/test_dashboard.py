import os
import sys
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.schemas.applications import Application, Job, JobCreate  # noqa: E402
from app.services.dashboard import compute_dashboard_stats  # noqa: E402
from app.storage.sqlite_store import SqliteStorage  # noqa: E402

NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)


def _application(index, *, score, status, interview=False):
    return Application(
        id=f"a{index}",
        candidate_id=f"c{index}",
        job_id="j1",
        match_score=score,
        status=status,
        interview_scheduled=interview,
        created_at=NOW,
    )


class DashboardStatsTests(unittest.TestCase):
    def test_counts_and_rounded_average(self):
        applications = [
            _application(1, score=85, status="qualified", interview=True),
            _application(2, score=40, status="rejected"),
            _application(3, score=None, status="pending"),
            _application(4, score=72, status="interview_scheduled", interview=True),
        ]
        jobs = [
            Job(id="j1", title="Engineer", description="Builds backend services.", created_at=NOW),
            Job(id="j2", title="Analyst", description="Builds reports for finance.", status="closed", created_at=NOW),
        ]
        stats = compute_dashboard_stats(applications, jobs)

        self.assertEqual(stats.total_applications, 4)
        self.assertEqual(stats.shortlisted, 2)
        self.assertEqual(stats.interviews, 2)
        # (85 + 40 + 0 + 72) / 4 = 49.25
        self.assertEqual(stats.avg_score, 49)
        self.assertEqual(stats.active_jobs, 1)

    def test_half_rounds_up(self):
        applications = [
            _application(1, score=70, status="qualified"),
            _application(2, score=71, status="qualified"),
        ]
        self.assertEqual(compute_dashboard_stats(applications, []).avg_score, 71)

    def test_empty(self):
        stats = compute_dashboard_stats([], [])
        self.assertEqual(stats.total_applications, 0)
        self.assertEqual(stats.avg_score, 0)


class CandidateListingTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.storage = SqliteStorage(os.path.join(self._tmp.name, "screening.db"))
        self.storage.init()

    async def asyncTearDown(self):
        self.storage.close()
        self._tmp.cleanup()

    async def test_candidates_carry_application_and_job(self):
        job = await self.storage.create_job(JobCreate(title="Engineer", description="Builds backend services."))
        other_job = await self.storage.create_job(JobCreate(title="Analyst", description="Builds finance reports."))
        applied = await self.storage.create_candidate({"name": "Jane Doe", "email": "jane@example.com"})
        pending = await self.storage.create_candidate({"name": "Sam Lee"})
        application = await self.storage.create_application(
            {"candidate_id": applied.id, "job_id": job.id, "match_score": 77, "status": "qualified"}
        )

        listed = {item.id: item for item in await self.storage.list_candidates_with_applications()}
        self.assertEqual(listed[applied.id].application.id, application.id)
        self.assertEqual(listed[applied.id].application.job.title, "Engineer")
        self.assertIsNone(listed[pending.id].application)

        self.assertEqual([item.id for item in await self.storage.list_applications_by_job(job.id)], [application.id])
        self.assertEqual(await self.storage.list_applications_by_job(other_job.id), [])
        self.assertEqual(len(await self.storage.list_applications()), 1)


if __name__ == "__main__":
    unittest.main()
