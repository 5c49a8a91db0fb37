from celery import Celery
from celery.schedules import crontab

from .core.config import settings

# Celery configuration
celery_app = Celery(
    "madrasah_admin",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["madrasah_admin.tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    beat_schedule={
        "daily-auto-backup": {
            "task": "madrasah_admin.tasks.auto_backup_all",
            "schedule": crontab(hour=settings.auto_backup_hour, minute=0),
        },
    },
)
