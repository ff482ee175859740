from contextlib import asynccontextmanager
import logging

from app.ai.factory import get_ai_judge
from app.core.config import settings
from app.integrations.email import SmtpMailTransport
from app.services.application_pipeline import ApplicationPipeline
from app.services.fit_scorer import FitScorer
from app.services.notification_dispatcher import NotificationDispatcher
from app.services.notification_registry import NotificationRegistry
from app.storage.sqlite_store import SqliteStorage

logger = logging.getLogger(__name__)


def build_pipeline(storage: SqliteStorage, registry: NotificationRegistry) -> ApplicationPipeline:
    scorer = FitScorer(get_ai_judge(), attempt_timeout_s=settings.scoring_attempt_timeout_s)
    dispatcher = NotificationDispatcher(SmtpMailTransport(settings), sender=settings.smtp_from or settings.hr_from_email)
    return ApplicationPipeline(storage=storage, scorer=scorer, dispatcher=dispatcher, registry=registry)


@asynccontextmanager
async def lifespan(app):
    storage = SqliteStorage(settings.database_path)
    storage.init()
    registry = NotificationRegistry()

    app.state.storage = storage
    app.state.notification_registry = registry
    app.state.pipeline = build_pipeline(storage, registry)
    logger.info("startup_complete db=%s ai_provider=%s", settings.database_path, settings.ai_provider)
    try:
        yield
    finally:
        storage.close()
