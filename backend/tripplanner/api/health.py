"""
Health check routes.
Liveness/readiness probes plus a summary of stored rows.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
import time
import logging

from tripplanner.core.config import settings
from tripplanner.core.rate_limiting import limiter, HEALTH_LIMIT
from tripplanner.db.database import get_db
from tripplanner.db.models import Expense, Place, Trip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

# Track startup time for uptime reporting
_STARTUP_TIME = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/")
@limiter.limit(HEALTH_LIMIT)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Check system health: database connectivity, row counts, uptime.
    """
    health = {
        "status": "healthy",
        "version": settings.app_version,
        "database": "unavailable",
        "trips": 0,
        "places": 0,
        "expenses": 0,
        "uptime_seconds": int(time.time() - _STARTUP_TIME),
        "timestamp": _now(),
    }

    try:
        health["trips"] = db.query(func.count(Trip.id)).scalar() or 0
        health["places"] = db.query(func.count(Place.id)).scalar() or 0
        health["expenses"] = db.query(func.count(Expense.id)).scalar() or 0
        health["database"] = "available"
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {str(e)}")
        health["status"] = "degraded"

    return health


@router.get("/ready")
@limiter.limit(HEALTH_LIMIT)
def readiness_check(request: Request, db: Session = Depends(get_db)):
    """Reports ready only when the database answers."""
    try:
        db.execute(text("SELECT 1"))
        return {"ready": True, "timestamp": _now()}
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return {"ready": False, "error": "database unavailable", "timestamp": _now()}


@router.get("/live")
def liveness_check():
    """Liveness probe. Returns 200 if service is running."""
    return {"alive": True, "uptime_seconds": int(time.time() - _STARTUP_TIME), "timestamp": _now()}
