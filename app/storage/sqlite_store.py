from __future__ import annotations

import asyncio
import json
import os
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from app.schemas.applications import (
    Application,
    ApplicationWithJob,
    Candidate,
    CandidateWithApplication,
    Job,
    JobCreate,
)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        requirements TEXT NOT NULL DEFAULT '',
        location TEXT,
        type TEXT NOT NULL DEFAULT 'full-time',
        status TEXT NOT NULL DEFAULT 'active',
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS candidates (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL DEFAULT '',
        phone TEXT,
        resume_filename TEXT,
        resume_text TEXT,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS applications (
        id TEXT PRIMARY KEY,
        candidate_id TEXT NOT NULL REFERENCES candidates (id),
        job_id TEXT NOT NULL REFERENCES jobs (id),
        match_score INTEGER,
        strengths_json TEXT NOT NULL DEFAULT '[]',
        weaknesses_json TEXT NOT NULL DEFAULT '[]',
        ai_summary TEXT,
        interview_questions_json TEXT NOT NULL DEFAULT '[]',
        status TEXT NOT NULL DEFAULT 'pending',
        interview_scheduled INTEGER NOT NULL DEFAULT 0,
        interview_date TEXT,
        email_sent INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_applications_job
    ON applications (job_id);
    """,
)

_CANDIDATE_COLUMNS = ("name", "email", "phone", "resume_filename", "resume_text", "status")
_APPLICATION_COLUMNS = (
    "candidate_id",
    "job_id",
    "match_score",
    "strengths",
    "weaknesses",
    "ai_summary",
    "interview_questions",
    "status",
    "interview_scheduled",
    "interview_date",
    "email_sent",
)
_JSON_LIST_COLUMNS = {"strengths", "weaknesses", "interview_questions"}
_BOOL_COLUMNS = {"interview_scheduled", "email_sent"}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _to_db_value(column: str, value: Any) -> Any:
    if column in _JSON_LIST_COLUMNS:
        return json.dumps(list(value or []), ensure_ascii=False)
    if column in _BOOL_COLUMNS:
        return 1 if value else 0
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _db_column(column: str) -> str:
    return f"{column}_json" if column in _JSON_LIST_COLUMNS else column


class SqliteStorage:
    """Jobs, candidates and applications in a single SQLite file.

    Every call commits on its own; there are no cross-call transactions.
    """

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute("PRAGMA foreign_keys=ON;")
            for statement in _SCHEMA:
                conn.execute(statement)
            self._conn = conn
            return conn

    def init(self) -> None:
        self._get_connection()

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # -- row mapping

    @staticmethod
    def _job_from_row(row: sqlite3.Row) -> Job:
        data = dict(row)
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        return Job.model_validate(data)

    @staticmethod
    def _candidate_from_row(row: sqlite3.Row) -> Candidate:
        data = dict(row)
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        return Candidate.model_validate(data)

    @staticmethod
    def _application_from_row(row: sqlite3.Row) -> Application:
        data = dict(row)
        for column in _JSON_LIST_COLUMNS:
            data[column] = json.loads(data.pop(f"{column}_json") or "[]")
        for column in _BOOL_COLUMNS:
            data[column] = bool(data[column])
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        if data.get("interview_date"):
            data["interview_date"] = datetime.fromisoformat(data["interview_date"])
        return Application.model_validate(data)

    # -- blocking implementations

    def _fetch_one(self, sql: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        conn = self._get_connection()
        with self._lock:
            return conn.execute(sql, params).fetchone()

    def _insert(self, table: str, values: dict[str, Any]) -> None:
        conn = self._get_connection()
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self._lock:
            conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", tuple(values.values()))

    def _list_jobs(self) -> list[Job]:
        conn = self._get_connection()
        with self._lock:
            rows = conn.execute("SELECT * FROM jobs ORDER BY created_at DESC").fetchall()
        return [self._job_from_row(row) for row in rows]

    def _get_job(self, job_id: str) -> Job | None:
        row = self._fetch_one("SELECT * FROM jobs WHERE id = ?", (job_id,))
        return self._job_from_row(row) if row else None

    def _create_job(self, job: JobCreate) -> Job:
        job_id = _new_id()
        values = {"id": job_id, **job.model_dump(), "created_at": _utc_now().isoformat()}
        self._insert("jobs", values)
        created = self._get_job(job_id)
        if created is None:
            raise RuntimeError("Row vanished right after insert.")
        return created

    def _get_candidate(self, candidate_id: str) -> Candidate | None:
        row = self._fetch_one("SELECT * FROM candidates WHERE id = ?", (candidate_id,))
        return self._candidate_from_row(row) if row else None

    def _create_candidate(self, fields: dict[str, Any]) -> Candidate:
        unknown = set(fields) - set(_CANDIDATE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown candidate fields: {sorted(unknown)}")
        candidate_id = _new_id()
        values = {"id": candidate_id, "email": "", "status": "pending"}
        values.update({column: _to_db_value(column, value) for column, value in fields.items()})
        values["created_at"] = _utc_now().isoformat()
        self._insert("candidates", values)
        created = self._get_candidate(candidate_id)
        if created is None:
            raise RuntimeError("Row vanished right after insert.")
        return created

    def _get_application(self, application_id: str) -> Application | None:
        row = self._fetch_one("SELECT * FROM applications WHERE id = ?", (application_id,))
        return self._application_from_row(row) if row else None

    def _fetch_all(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        conn = self._get_connection()
        with self._lock:
            return conn.execute(sql, params).fetchall()

    def _list_applications(self) -> list[Application]:
        rows = self._fetch_all("SELECT * FROM applications ORDER BY created_at DESC")
        return [self._application_from_row(row) for row in rows]

    def _list_applications_by_job(self, job_id: str) -> list[Application]:
        rows = self._fetch_all(
            "SELECT * FROM applications WHERE job_id = ? ORDER BY created_at DESC",
            (job_id,),
        )
        return [self._application_from_row(row) for row in rows]

    def _list_candidates_with_applications(self) -> list[CandidateWithApplication]:
        candidates = [
            self._candidate_from_row(row)
            for row in self._fetch_all("SELECT * FROM candidates ORDER BY created_at DESC")
        ]
        jobs = {job.id: job for job in self._list_jobs()}
        # Newest first, so the first hit per candidate is its latest application.
        latest: dict[str, ApplicationWithJob] = {}
        for application in self._list_applications():
            job = jobs.get(application.job_id)
            if job is None or application.candidate_id in latest:
                continue
            latest[application.candidate_id] = ApplicationWithJob(**application.model_dump(), job=job)
        return [
            CandidateWithApplication(**candidate.model_dump(), application=latest.get(candidate.id))
            for candidate in candidates
        ]

    def _create_application(self, fields: dict[str, Any]) -> Application:
        unknown = set(fields) - set(_APPLICATION_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown application fields: {sorted(unknown)}")
        application_id = _new_id()
        values: dict[str, Any] = {"id": application_id}
        values.update({_db_column(column): _to_db_value(column, value) for column, value in fields.items()})
        values["created_at"] = _utc_now().isoformat()
        self._insert("applications", values)
        created = self._get_application(application_id)
        if created is None:
            raise RuntimeError("Row vanished right after insert.")
        return created

    def _update_application(self, application_id: str, fields: dict[str, Any]) -> Application | None:
        unknown = set(fields) - set(_APPLICATION_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown application fields: {sorted(unknown)}")
        if fields:
            assignments = ", ".join(f"{_db_column(column)} = ?" for column in fields)
            params = tuple(_to_db_value(column, value) for column, value in fields.items())
            conn = self._get_connection()
            with self._lock:
                conn.execute(f"UPDATE applications SET {assignments} WHERE id = ?", (*params, application_id))
        return self._get_application(application_id)

    # -- async interface

    async def list_jobs(self) -> list[Job]:
        return await asyncio.to_thread(self._list_jobs)

    async def get_job(self, job_id: str) -> Job | None:
        return await asyncio.to_thread(self._get_job, job_id)

    async def create_job(self, job: JobCreate) -> Job:
        return await asyncio.to_thread(self._create_job, job)

    async def get_candidate(self, candidate_id: str) -> Candidate | None:
        return await asyncio.to_thread(self._get_candidate, candidate_id)

    async def create_candidate(self, fields: dict[str, Any]) -> Candidate:
        return await asyncio.to_thread(self._create_candidate, fields)

    async def get_application(self, application_id: str) -> Application | None:
        return await asyncio.to_thread(self._get_application, application_id)

    async def list_applications(self) -> list[Application]:
        return await asyncio.to_thread(self._list_applications)

    async def list_applications_by_job(self, job_id: str) -> list[Application]:
        return await asyncio.to_thread(self._list_applications_by_job, job_id)

    async def list_candidates_with_applications(self) -> list[CandidateWithApplication]:
        return await asyncio.to_thread(self._list_candidates_with_applications)

    async def create_application(self, fields: dict[str, Any]) -> Application:
        return await asyncio.to_thread(self._create_application, fields)

    async def update_application(self, application_id: str, fields: dict[str, Any]) -> Application | None:
        return await asyncio.to_thread(self._update_application, application_id, fields)
