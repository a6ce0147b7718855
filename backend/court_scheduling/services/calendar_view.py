"""
services/calendar_view.py

Read-only projections over the schedule for the court-scheduler screens:
the monthly calendar grid, the scheduled-cases list, the request queue and
the dashboard counters.

Called by:
  - api/v1/endpoints/court_scheduler.py
  - services/schedule_pdf_renderer.py (consumes calendar_for_month output)

Nothing here writes. A malformed row is logged and skipped; it never fails
the whole projection.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import case as sql_case, func
from sqlalchemy.orm import Session

from court_scheduling.core.config import settings
from court_scheduling.db.models import (
    AdjournmentRequest,
    AdjournmentStatus,
    Case,
    ScheduledEntry,
    ScheduledEntryStatus,
    SchedulePriority,
    ScheduleRequest,
)
from court_scheduling.utils.exceptions import SchedulingValidationError
from court_scheduling.utils.validators import is_all_districts

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "Unknown Client"
NOT_ASSIGNED = "Not Assigned"

# Superseded and cancelled bookings never show on the calendar
HIDDEN_ENTRY_STATUSES = (ScheduledEntryStatus.adjourned, ScheduledEntryStatus.cancelled)


@dataclass
class HearingSummary:
    entry_id: UUID
    case_id: UUID
    case_number: str
    case_type: str
    client_name: str
    lawyer_name: str
    courtroom: str
    hearing_date: date
    start_time: str
    end_time: str
    status: str
    plaintiff_name: Optional[str] = None
    defendant_name: Optional[str] = None
    scheduling_notes: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["entry_id"] = str(self.entry_id)
        data["case_id"] = str(self.case_id)
        data["hearing_date"] = self.hearing_date.isoformat()
        return data


@dataclass
class DashboardStats:
    unscheduled_count: int = 0
    scheduled_this_month: int = 0
    todays_hearings: int = 0
    pending_adjournments: int = 0
    priority_breakdown: dict[str, int] = field(
        default_factory=lambda: {p.value: 0 for p in SchedulePriority}
    )


def court_today() -> date:
    return datetime.now(ZoneInfo(settings.COURT_TIMEZONE)).date()


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of the month, inclusive."""
    if not 1 <= month <= 12:
        raise SchedulingValidationError("Month must be between 1 and 12")
    if not 1900 <= year <= 9999:
        raise SchedulingValidationError("Year is out of range")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def summarize_entry(entry: ScheduledEntry) -> HearingSummary:
    return HearingSummary(
        entry_id=entry.id,
        case_id=entry.case_id,
        case_number=entry.case_number,
        case_type=entry.case_type,
        client_name=entry.client_name or UNKNOWN_CLIENT,
        lawyer_name=entry.lawyer_name or NOT_ASSIGNED,
        courtroom=entry.courtroom,
        hearing_date=entry.hearing_date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        status=entry.status.value,
        plaintiff_name=entry.plaintiff_name,
        defendant_name=entry.defendant_name,
        scheduling_notes=entry.scheduling_notes,
    )


# ============================================================================
# Calendar
# ============================================================================

def list_scheduled_entries(
    db:        Session,
    district:  Optional[str]  = None,
    date_from: Optional[date] = None,
    date_to:   Optional[date] = None,
) -> list[ScheduledEntry]:
    """
    Visible calendar entries ordered by date then start time.

    Filters:
        district:            'all' or None means every district
        date_from / date_to: inclusive range on hearing_date
    """
    query = db.query(ScheduledEntry).filter(
        ScheduledEntry.status.notin_(HIDDEN_ENTRY_STATUSES),
    )
    if not is_all_districts(district):
        query = query.filter(ScheduledEntry.district == district)
    if date_from:
        query = query.filter(ScheduledEntry.hearing_date >= date_from)
    if date_to:
        query = query.filter(ScheduledEntry.hearing_date <= date_to)

    return query.order_by(ScheduledEntry.hearing_date, ScheduledEntry.start_time).all()


def calendar_for_month(
    db:       Session,
    district: Optional[str],
    year:     int,
    month:    int,
) -> dict[str, list[HearingSummary]]:
    """
    Hearings of one month grouped by ISO date ("2025-03-10").
    Days without hearings are absent from the mapping.
    """
    first, last = month_bounds(year, month)

    grouped: dict[str, list[HearingSummary]] = {}
    for entry in list_scheduled_entries(db, district, first, last):
        try:
            summary = summarize_entry(entry)
        except Exception as e:
            logger.warning("Skipping calendar entry %s: %s", getattr(entry, "id", None), e)
            continue
        grouped.setdefault(summary.hearing_date.isoformat(), []).append(summary)

    return grouped


# ============================================================================
# Queue
# ============================================================================

def schedule_requests_queue(
    db:           Session,
    district:     Optional[str] = None,
    is_scheduled: bool          = False,
) -> list[ScheduleRequest]:
    """Requests ordered high, medium, low priority, then newest first."""
    priority_rank = sql_case(
        (ScheduleRequest.priority == SchedulePriority.high, 0),
        (ScheduleRequest.priority == SchedulePriority.medium, 1),
        else_=2,
    )

    query = db.query(ScheduleRequest).filter(ScheduleRequest.is_scheduled == is_scheduled)
    if not is_all_districts(district):
        query = query.filter(ScheduleRequest.district == district)

    return query.order_by(priority_rank, ScheduleRequest.created_at.desc()).all()


# ============================================================================
# Dashboard
# ============================================================================

def dashboard_stats(
    db:       Session,
    district: Optional[str]  = None,
    today:    Optional[date] = None,
) -> DashboardStats:
    today = today or court_today()
    month_start = today.replace(day=1)
    month_end = month_start + timedelta(days=calendar.monthrange(today.year, today.month)[1])
    filter_district = not is_all_districts(district)

    requests = db.query(ScheduleRequest).filter(ScheduleRequest.is_scheduled == False)
    entries = db.query(ScheduledEntry).filter(ScheduledEntry.status.notin_(HIDDEN_ENTRY_STATUSES))
    adjournments = (
        db.query(AdjournmentRequest)
        .join(Case, Case.id == AdjournmentRequest.case_id)
        .filter(AdjournmentRequest.status == AdjournmentStatus.pending)
    )
    if filter_district:
        requests = requests.filter(ScheduleRequest.district == district)
        entries = entries.filter(ScheduledEntry.district == district)
        adjournments = adjournments.filter(Case.district == district)

    stats = DashboardStats(
        unscheduled_count=requests.count(),
        scheduled_this_month=entries.filter(
            ScheduledEntry.hearing_date >= month_start,
            ScheduledEntry.hearing_date < month_end,
        ).count(),
        todays_hearings=entries.filter(ScheduledEntry.hearing_date == today).count(),
        pending_adjournments=adjournments.count(),
    )

    by_priority = (
        requests.with_entities(ScheduleRequest.priority, func.count(ScheduleRequest.id))
        .group_by(ScheduleRequest.priority)
        .all()
    )
    for priority, count in by_priority:
        stats.priority_breakdown[priority.value] = count

    return stats
