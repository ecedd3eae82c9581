"""
Celery application configuration for background scoring and scheduling.
"""

from datetime import timedelta

from celery import Celery

from horizon_risk.core.config import settings

celery_app = Celery(
    "horizon_risk",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["horizon_risk.tasks.scoring", "horizon_risk.tasks.scheduled"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
    task_track_started=True,
    task_time_limit=120,
    task_soft_time_limit=90,
    worker_prefetch_multiplier=2,
    worker_max_tasks_per_child=100,
)

celery_app.conf.beat_schedule = {
    "recalculate-trust-scores": {
        "task": "scheduled.trust_recalculation",
        "schedule": timedelta(minutes=settings.TRUST_SCORE_UPDATE_INTERVAL_MINUTES),
        "args": (),
    },
}

celery_app.conf.task_routes = {
    "scoring.*": {"queue": "scoring"},
    "scheduled.*": {"queue": "scheduled"},
}

celery_app.conf.task_annotations = {
    "*": {
        "rate_limit": "10/s",
        "max_retries": 3,
        "default_retry_delay": 60,
    },
}
