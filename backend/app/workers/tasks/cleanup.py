"""Periodic cleanup tasks."""

from __future__ import annotations

from backend.app.workers.celery_app import celery


@celery.task(name="backend.app.workers.tasks.cleanup.prune_expired_refresh_tokens")
def prune_expired_refresh_tokens() -> dict:
    """Delete refresh-token rows past their expiry.

    Login already prunes the signing-in user's own set; this sweep covers
    accounts that stop logging in.
    """
    from backend.app.core.database import SessionLocal
    from backend.app.services.auth import prune_expired_refresh_tokens as prune

    db = SessionLocal()
    try:
        removed = prune(db)
    finally:
        db.close()
    return {"removed": removed}
