"""
services/conflict_checker.py

Decides whether a hearing window collides with an active calendar entry.

Two rules, selected by settings.CONFLICT_CHECK_MODE:
  overlap  existing.start < new.end and new.start < existing.end
  exact    identical start and end strings only (legacy data compatibility)

The partition key is (district, courtroom, date). With
CONFLICT_SCOPE_INCLUDES_COURTROOM disabled the courtroom is dropped and the
whole district shares one slot space.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from court_scheduling.core.config import settings
from court_scheduling.db.models import ACTIVE_ENTRY_STATUSES, ScheduledEntry
from court_scheduling.utils.helpers import windows_overlap

logger = logging.getLogger(__name__)


def effective_courtroom(courtroom: Optional[str]) -> Optional[str]:
    """Courtroom component of the conflict key, or None when scoping is district-wide."""
    if not settings.CONFLICT_SCOPE_INCLUDES_COURTROOM:
        return None
    return courtroom


def windows_collide(start_a: str, end_a: str, start_b: str, end_b: str, mode: Optional[str] = None) -> bool:
    mode = mode or settings.CONFLICT_CHECK_MODE
    if mode == "exact":
        return start_a == start_b and end_a == end_b
    return windows_overlap(start_a, end_a, start_b, end_b)


def active_entries(
    db:           Session,
    district:     str,
    hearing_date: date,
    courtroom:    Optional[str] = None,
) -> list[ScheduledEntry]:
    """Active entries on the partition, ordered by start time."""
    query = db.query(ScheduledEntry).filter(
        ScheduledEntry.district == district,
        ScheduledEntry.hearing_date == hearing_date,
        ScheduledEntry.status.in_(ACTIVE_ENTRY_STATUSES),
    )
    if courtroom is not None:
        query = query.filter(ScheduledEntry.courtroom == courtroom)
    return query.order_by(ScheduledEntry.start_time).all()


def find_conflict(
    db:               Session,
    district:         str,
    hearing_date:     date,
    start_time:       str,
    end_time:         str,
    courtroom:        Optional[str] = None,
    exclude_entry_id: Optional[UUID] = None,
) -> Optional[ScheduledEntry]:
    """
    Returns the first active entry colliding with [start_time, end_time),
    or None if the window is free.

    exclude_entry_id skips the entry being replaced (adjournment accept).
    """
    scope = effective_courtroom(courtroom)
    for entry in active_entries(db, district, hearing_date, scope):
        if exclude_entry_id is not None and entry.id == exclude_entry_id:
            continue
        if windows_collide(entry.start_time, entry.end_time, start_time, end_time):
            logger.info(
                "Slot conflict: district=%s courtroom=%s date=%s window=%s-%s clashes with entry %s (%s-%s)",
                district, entry.courtroom, hearing_date, start_time, end_time,
                entry.id, entry.start_time, entry.end_time,
            )
            return entry
    return None


def has_conflict(
    db:               Session,
    district:         str,
    hearing_date:     date,
    start_time:       str,
    end_time:         str,
    courtroom:        Optional[str] = None,
    exclude_entry_id: Optional[UUID] = None,
) -> bool:
    return find_conflict(
        db, district, hearing_date, start_time, end_time,
        courtroom=courtroom, exclude_entry_id=exclude_entry_id,
    ) is not None
