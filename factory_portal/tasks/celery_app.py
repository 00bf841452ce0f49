"""Celery application bootstrap."""

from __future__ import annotations

from celery import Celery

from factory_portal.core.config import get_config

config = get_config()

celery_app = Celery(
    "factory_portal",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["factory_portal.tasks.trigger_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # At-least-once: acknowledge after the handler ran, requeue on worker loss.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_time_limit=config.TRIGGER_TIME_LIMIT_SECONDS,
    task_soft_time_limit=max(1, config.TRIGGER_TIME_LIMIT_SECONDS - 5),
)

# Local/dev convenience: run tasks synchronously when requested.
if config.CELERY_TASK_ALWAYS_EAGER:
    celery_app.conf.task_always_eager = True
