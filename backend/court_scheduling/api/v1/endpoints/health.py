"""
Health and readiness checks: database connectivity and active settings.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from court_scheduling.core.config import settings
from court_scheduling.core.logger import logger
from court_scheduling.db.database import get_db

router = APIRouter()


def _check_database(db: Session) -> tuple[str, str]:
    """Returns (status, detail). Status is 'ok' or 'error'."""
    try:
        db.execute(text("SELECT 1"))
        return "ok", f"{db.get_bind().dialect.name} reachable"
    except SQLAlchemyError as e:
        logger.exception("Database check failed")
        return "error", f"Database: {str(e)}"


@router.get("")
def readiness(db: Session = Depends(get_db)):
    db_status, db_detail = _check_database(db)
    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "database": {"status": db_status, "detail": db_detail},
        "conflict_check_mode": settings.CONFLICT_CHECK_MODE,
        "conflict_scope_includes_courtroom": settings.CONFLICT_SCOPE_INCLUDES_COURTROOM,
    }
