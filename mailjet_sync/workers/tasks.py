"""
Celery Tasks for Mailjet reconciliation

Each task opens its own database session and its own ConnectionProvider,
so no Mailjet client outlives the task that created it.
"""
from __future__ import annotations

import asyncio
from contextlib import contextmanager

from mailjet_sync.workers.celery_app import celery_app
from mailjet_sync.db.database import get_task_session
from mailjet_sync.domain.services.reconciliation_service import ReconciliationService
from mailjet_sync.core.logging import get_logger, set_correlation_id

logger = get_logger(__name__)


@contextmanager
def get_event_loop():
    """
    Context manager for proper event loop handling in Celery tasks.
    Creates a new event loop and ensures proper cleanup to prevent resource leaks.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        finally:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()


def run_async(coro):
    """Helper to run async code in sync Celery task with proper cleanup"""
    set_correlation_id()

    with get_event_loop() as loop:
        return loop.run_until_complete(coro)


async def _sync_all() -> dict:
    async with get_task_session() as db:
        reports = await ReconciliationService(db).sync_all()
    return {name: report.to_dict() for name, report in reports.items()}


async def _import_templates(store_id: int) -> dict:
    async with get_task_session() as db:
        report = await ReconciliationService(db).import_templates(store_id)
    return report.to_dict()


async def _save_as_default_templates(store_id: int) -> dict:
    async with get_task_session() as db:
        report = await ReconciliationService(db).save_as_default_templates(store_id)
    return report.to_dict()


@celery_app.task(name="mailjet_sync.workers.tasks.sync_mailjet_configs")
def sync_mailjet_configs() -> dict:
    """סנכרון מלא של כל ה-configs. שגיאות נזרקות ל-Celery (ללא retry)."""
    result = run_async(_sync_all())
    logger.info("סנכרון Mailjet מתוזמן הסתיים", extra_data=result)
    return result


@celery_app.task(name="mailjet_sync.workers.tasks.import_mailjet_templates")
def import_mailjet_templates(store_id: int) -> dict:
    return run_async(_import_templates(store_id))


@celery_app.task(name="mailjet_sync.workers.tasks.save_mailjet_templates_as_default")
def save_mailjet_templates_as_default(store_id: int) -> dict:
    return run_async(_save_as_default_templates(store_id))
