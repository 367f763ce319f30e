"""
Celery Application Configuration
"""
from celery import Celery
from celery.schedules import crontab

from mailjet_sync.core.config import settings

celery_app = Celery(
    "mailjet_sync",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["mailjet_sync.workers.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,  # 10 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

# Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    # סנכרון מלא (idempotent) - פעם ביום ב-02:30
    "sync-mailjet-configs-daily": {
        "task": "mailjet_sync.workers.tasks.sync_mailjet_configs",
        "schedule": crontab(hour="2", minute="30"),
    },
}
