"""Celery application for background settlement.

Run with: celery -A src.worker worker --beat --loglevel=info
"""

from celery import Celery

from config.settings import settings

celery_app = Celery(
    "race_wagering",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["src.wg_settlement.application.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.SETTLEMENT_TASK_TIME_LIMIT_SECONDS,
    task_soft_time_limit=settings.SETTLEMENT_TASK_TIME_LIMIT_SECONDS - 60,
    result_expires=3600,
    worker_prefetch_multiplier=1,
)

# Beat fires at the retry cadence; the task's next-due gate stretches clean
# cycles out to the normal interval.
celery_app.conf.beat_schedule = {
    "settle-races": {
        "task": "src.wg_settlement.application.tasks.settle_races_task",
        "schedule": float(settings.SETTLEMENT_RETRY_INTERVAL_SECONDS),
        "options": {"expires": max(settings.SETTLEMENT_RETRY_INTERVAL_SECONDS - 20, 1)},
    },
}
