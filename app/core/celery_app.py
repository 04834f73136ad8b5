"""
Celery application configuration.

This module configures Celery to use Redis as both the message broker and result backend.
The worker process will use this configuration to connect to Redis and process tasks;
Celery Beat uses the schedule below for automatic backups and housekeeping.
"""

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging
from app.core.config import settings
from app.core.logging_config import setup_logging

# Create Celery instance
celery_app = Celery(
    "school_portal_worker",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL
)

# Configure Celery
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task behavior
    task_track_started=True,  # Track when tasks start (for monitoring)
    task_time_limit=900,  # 15 minutes max per task (large backups)
    task_soft_time_limit=840,

    # Result backend
    result_expires=3600,  # Results expire after 1 hour

    # Worker behavior
    worker_prefetch_multiplier=1,  # Only fetch 1 task at a time
    worker_max_tasks_per_child=50,  # Restart worker after 50 tasks (prevent memory leaks)

    # Periodic tasks
    beat_schedule={
        # backup_settings decides whether a backup is actually due
        "scheduled-backup": {
            "task": "scheduled_backup_task",
            "schedule": crontab(minute=0),
        },
        "purge-verification-attempts": {
            "task": "purge_verification_attempts_task",
            "schedule": crontab(hour=3, minute=30),
        },
    },
)

# Auto-discover tasks from app.tasks module
celery_app.autodiscover_tasks(['app'])


@celery_setup_logging.connect
def _configure_worker_logging(*args, **kwargs):
    # Workers log in the same format as the API
    setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.JSON_LOGS)
