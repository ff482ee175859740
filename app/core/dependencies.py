from __future__ import annotations

from fastapi import Request

from app.services.application_pipeline import ApplicationPipeline
from app.storage.base import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_pipeline(request: Request) -> ApplicationPipeline:
    return request.app.state.pipeline
