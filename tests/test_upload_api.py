import os
import sys
import tempfile
import unittest
from dataclasses import replace
from io import BytesIO
from pathlib import Path
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fakes import RESUME_TEXT, FakeJudge, RecordingSleep, RecordingTransport, judge_payload  # noqa: E402


class UploadResumeApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._tmp = tempfile.TemporaryDirectory()

        from app.core.config import settings
        from app.core.dependencies import get_pipeline
        from app.core.rate_limit import limiter
        from app.main import app

        test_settings = replace(
            settings,
            database_path=os.path.join(cls._tmp.name, "api.db"),
            max_upload_mb=1,
            smtp_host=None,
        )
        cls._patches = [
            patch("app.core.lifespan.settings", test_settings),
            patch("app.api.v1.applications.settings", test_settings),
            patch.object(limiter, "enabled", False),
        ]
        for patcher in cls._patches:
            patcher.start()

        cls.app = app
        cls.get_pipeline = staticmethod(get_pipeline)
        cls.client = TestClient(app)
        cls.client.__enter__()

    @classmethod
    def tearDownClass(cls):
        cls.app.dependency_overrides.clear()
        cls.client.__exit__(None, None, None)
        for patcher in reversed(cls._patches):
            patcher.stop()
        cls._tmp.cleanup()

    def setUp(self):
        from app.services.application_pipeline import ApplicationPipeline
        from app.services.fit_scorer import FitScorer
        from app.services.notification_dispatcher import NotificationDispatcher

        self.judge = FakeJudge(judge_payload(82))
        self.transport = RecordingTransport()
        pipeline = ApplicationPipeline(
            storage=self.app.state.storage,
            scorer=FitScorer(self.judge, sleep=RecordingSleep()),
            dispatcher=NotificationDispatcher(self.transport, sender="hr@company.com"),
            registry=self.app.state.notification_registry,
        )
        self.app.dependency_overrides[self.get_pipeline] = lambda: pipeline

        response = self.client.post(
            "/v1/jobs",
            json={
                "title": "Backend Engineer",
                "description": "Python backend engineer for payment services.",
                "location": "Remote",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.job = response.json()

    def _upload(self, content=RESUME_TEXT.encode("utf-8"), filename="resume.txt", content_type="text/plain", **form):
        data = {"jobId": self.job["id"], **form}
        return self.client.post(
            "/v1/upload-resume",
            files={"resume": (filename, content, content_type)},
            data=data,
        )

    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_jobs_roundtrip(self):
        listed = self.client.get("/v1/jobs").json()
        self.assertIn(self.job["id"], [job["id"] for job in listed])
        fetched = self.client.get(f"/v1/jobs/{self.job['id']}")
        self.assertEqual(fetched.json()["title"], "Backend Engineer")

        missing = self.client.get("/v1/jobs/nope")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"message": "Job not found"})

    def test_upload_qualified(self):
        response = self._upload(candidateName="Jane Doe", candidateEmail="jane@example.com")
        self.assertEqual(response.status_code, 200)
        body = response.json()

        self.assertEqual(body["analysis"]["match_score"], 82)
        self.assertEqual(body["application"]["status"], "qualified")
        self.assertTrue(body["application"]["interview_scheduled"])
        self.assertTrue(body["application"]["email_sent"])
        self.assertEqual(body["application"]["job"]["id"], self.job["id"])
        self.assertEqual(body["candidate"]["email"], "jane@example.com")
        self.assertEqual(self.transport.sent[0].to, "jane@example.com")

    def test_missing_file(self):
        response = self.client.post("/v1/upload-resume", data={"jobId": self.job["id"]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "No file uploaded"})

    def test_missing_job_id(self):
        response = self.client.post(
            "/v1/upload-resume",
            files={"resume": ("resume.txt", RESUME_TEXT.encode("utf-8"), "text/plain")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"message": "Job ID is required"})

    def test_unknown_job(self):
        response = self.client.post(
            "/v1/upload-resume",
            files={"resume": ("resume.txt", RESUME_TEXT.encode("utf-8"), "text/plain")},
            data={"jobId": "does-not-exist"},
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.judge.calls, [])

    def test_unreadable_resume(self):
        response = self._upload(content=b"tiny")
        self.assertEqual(response.status_code, 400)
        self.assertIn("unreadable", response.json()["message"])
        self.assertEqual(self.judge.calls, [])

    def test_unsupported_type(self):
        response = self._upload(content=b"\x89PNG\r\n\x1a\n" + b"\x00" * 40, filename="me.png", content_type="image/png")
        self.assertEqual(response.status_code, 400)

    def test_oversized_upload(self):
        response = self._upload(content=b"a" * (1024 * 1024 + 1))
        self.assertEqual(response.status_code, 413)

    def test_manual_actions(self):
        created = self._upload(candidateEmail="jane@example.com").json()
        application_id = created["application"]["id"]

        scheduled = self.client.post(
            f"/v1/applications/{application_id}/schedule-interview",
            json={"interview_date": "2030-03-01T10:00:00+00:00"},
        )
        self.assertEqual(scheduled.status_code, 200)
        self.assertEqual(scheduled.json()["status"], "interview_scheduled")

        invited = self.client.post(f"/v1/applications/{application_id}/send-invite")
        self.assertEqual(invited.json(), {"success": True})

        rejected = self.client.post(f"/v1/applications/{application_id}/reject")
        self.assertEqual(rejected.json(), {"success": True})

        missing = self.client.post("/v1/applications/nope/reject")
        self.assertEqual(missing.status_code, 404)

    def test_candidates_and_job_applications(self):
        created = self._upload(candidateName="Jane Doe", candidateEmail="jane@example.com").json()
        candidate_id = created["candidate"]["id"]
        application_id = created["application"]["id"]

        listed = self.client.get("/v1/candidates")
        self.assertEqual(listed.status_code, 200)
        entry = next(item for item in listed.json() if item["id"] == candidate_id)
        self.assertEqual(entry["application"]["id"], application_id)
        self.assertEqual(entry["application"]["job"]["id"], self.job["id"])

        fetched = self.client.get(f"/v1/candidates/{candidate_id}")
        self.assertEqual(fetched.json()["email"], "jane@example.com")
        missing = self.client.get("/v1/candidates/nope")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json(), {"message": "Candidate not found"})

        by_job = self.client.get(f"/v1/jobs/{self.job['id']}/applications")
        self.assertEqual([item["id"] for item in by_job.json()], [application_id])
        self.assertEqual(self.client.get("/v1/jobs/nope/applications").status_code, 404)

    def test_dashboard_stats_track_uploads(self):
        before = self.client.get("/v1/dashboard-stats").json()
        self._upload(candidateEmail="jane@example.com")
        after = self.client.get("/v1/dashboard-stats").json()

        self.assertEqual(after["total_applications"], before["total_applications"] + 1)
        self.assertEqual(after["shortlisted"], before["shortlisted"] + 1)
        self.assertEqual(after["interviews"], before["interviews"] + 1)
        self.assertEqual(after["active_jobs"], before["active_jobs"])
        self.assertGreaterEqual(after["active_jobs"], 1)


class FakeUpload:
    def __init__(self, content: bytes, filename: str = "resume.txt", content_type: str = "text/plain"):
        self._buffer = BytesIO(content)
        self.filename = filename
        self.content_type = content_type
        self.close = AsyncMock()

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class UploadReleaseTests(unittest.IsolatedAsyncioTestCase):
    async def _process(self, upload, *, job_id="job-1", run_result=None, run_error=None):
        from app.api.v1.applications import process_upload

        pipeline = AsyncMock()
        pipeline.run.return_value = run_result
        pipeline.run.side_effect = run_error
        result = await process_upload(
            pipeline,
            upload,
            job_id=job_id,
            candidate_name=None,
            candidate_email=None,
            max_upload_mb=1,
        )
        return pipeline, result

    async def test_released_after_success(self):
        upload = FakeUpload(RESUME_TEXT.encode("utf-8"))
        pipeline, result = await self._process(upload, run_result="scored")
        self.assertEqual(result, "scored")
        self.assertEqual(pipeline.run.await_args.args[0].content, RESUME_TEXT.encode("utf-8"))
        upload.close.assert_awaited_once()

    async def test_released_when_resume_is_unreadable(self):
        from app.services.errors import ResumeUnreadable

        upload = FakeUpload(b"tiny")
        with self.assertRaises(ResumeUnreadable):
            await self._process(upload, run_error=ResumeUnreadable())
        upload.close.assert_awaited_once()

    async def test_released_when_upload_is_oversized(self):
        from app.services.errors import PipelineError

        upload = FakeUpload(b"a" * (1024 * 1024 + 1))
        with self.assertRaises(PipelineError) as ctx:
            await self._process(upload)
        self.assertEqual(ctx.exception.status_code, 413)
        upload.close.assert_awaited_once()

    async def test_released_when_job_id_is_missing(self):
        from app.services.errors import PipelineError

        upload = FakeUpload(RESUME_TEXT.encode("utf-8"))
        with self.assertRaises(PipelineError) as ctx:
            await self._process(upload, job_id="  ")
        self.assertEqual(ctx.exception.status_code, 400)
        upload.close.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
