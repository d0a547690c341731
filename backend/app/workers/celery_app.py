"""Celery application for the portal's background jobs.

Two kinds of work run here: the periodic sweep of expired refresh tokens and
member emails queued off the request path.

    celery -A backend.app.workers.celery_app worker --loglevel=info
    celery -A backend.app.workers.celery_app beat --loglevel=info
"""

from __future__ import annotations

from celery import Celery

from backend.app.core.config import settings

celery = Celery(
    "ican_portal",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "backend.app.workers.tasks.cleanup",
        "backend.app.workers.tasks.notifications",
    ],
)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="Africa/Lagos",
    enable_utc=True,
    # Sweep results are only interesting for a day
    result_expires=24 * 60 * 60,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "prune-expired-refresh-tokens": {
            "task": "backend.app.workers.tasks.cleanup.prune_expired_refresh_tokens",
            "schedule": settings.REFRESH_TOKEN_SWEEP_MINUTES * 60.0,
        },
    },
)
