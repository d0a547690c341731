from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.database import get_db, utcnow

router = APIRouter()


@router.get("/health")
def health(db: Session = Depends(get_db)) -> dict[str, object]:
    """Liveness plus a one-row database round trip."""
    db.execute(text("SELECT 1"))
    return {
        "success": True,
        "message": "ICAN API Server is running",
        "timestamp": utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
    }
