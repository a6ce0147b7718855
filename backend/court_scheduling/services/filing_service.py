"""
services/filing_service.py

Court filing collaborator. The scheduler only ever advances a filing to
'scheduled' and records the hearing date; everything else about filings
lives outside this engine.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from court_scheduling.db.models import CourtFiling, CourtFilingStatus

logger = logging.getLogger(__name__)


def latest_filing_for_case(db: Session, case_id: UUID) -> Optional[CourtFiling]:
    return (
        db.query(CourtFiling)
        .filter(CourtFiling.case_id == case_id)
        .order_by(CourtFiling.created_at.desc())
        .first()
    )


def update_filing_status(
    db:           Session,
    filing_id:    Optional[UUID],
    status:       CourtFilingStatus,
    hearing_date: Optional[date] = None,
    scheduled_by: Optional[UUID] = None,
    notes:        Optional[str]  = None,
) -> Optional[CourtFiling]:
    """
    Updates the filing in the caller's transaction. Does not commit.
    Returns None when the request was never linked to a filing.
    """
    if filing_id is None:
        return None

    filing = db.query(CourtFiling).filter(CourtFiling.id == filing_id).first()
    if not filing:
        logger.warning("Court filing %s not found; skipping status update", filing_id)
        return None

    filing.status = status
    if hearing_date is not None:
        filing.hearing_date = hearing_date
    if scheduled_by is not None:
        filing.scheduled_by = scheduled_by
    if notes is not None:
        filing.scheduling_notes = notes

    return filing
