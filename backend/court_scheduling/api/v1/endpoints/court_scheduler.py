"""
api/v1/endpoints/court_scheduler.py

Court scheduler screens: queue, allocation, calendar and PDF export.

Endpoints:
  GET  /api/v1/court-scheduler/stats                      dashboard counters
  GET  /api/v1/court-scheduler/unscheduled-requests       pending queue
  GET  /api/v1/court-scheduler/scheduled-cases            calendar entries in a range
  GET  /api/v1/court-scheduler/timeslots/available        free/occupied slots on a date
  POST /api/v1/court-scheduler/schedule/{request_id}      allocate a slot (Idempotency-Key)
  GET  /api/v1/court-scheduler/calendar                   month grid
  GET  /api/v1/court-scheduler/schedules-pdf              month grid as PDF

All endpoints require the court_scheduler role.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from court_scheduling.api.v1.deps import require_role
from court_scheduling.db.database import get_db
from court_scheduling.db.models import Case, User, UserRole
from court_scheduling.db.schemas import (
    CalendarOut,
    CaseHearingOut,
    DashboardStatsOut,
    ScheduledEntryOut,
    ScheduleRequestOut,
    ScheduleResultOut,
    SlotAvailabilityOut,
)
from court_scheduling.services import calendar_view
from court_scheduling.services.idempotency_service import (
    get_idempotent_response,
    store_idempotent_response,
)
from court_scheduling.services.schedule_pdf_renderer import render_schedule_pdf
from court_scheduling.services.scheduler_service import scheduler_service
from court_scheduling.services.slot_catalog import available_slots
from court_scheduling.utils.validators import is_all_districts, validate_district, validate_hearing_date

logger = logging.getLogger(__name__)

router = APIRouter()

scheduler_only = require_role(UserRole.court_scheduler)


# ============================================================================
# Request schemas
# ============================================================================

class ScheduleCaseRequest(BaseModel):
    hearing_date: Optional[str] = None
    start_time:   Optional[str] = None
    end_time:     Optional[str] = None
    courtroom:    Optional[str] = None
    notes:        Optional[str] = None


def _district_filter(district: Optional[str]) -> Optional[str]:
    """'all' or omitted passes through; anything else must be a known district."""
    if is_all_districts(district):
        return district
    return validate_district(district)


def _month_or_today(year: Optional[int], month: Optional[int]) -> tuple[int, int]:
    today = calendar_view.court_today()
    return year or today.year, month or today.month


# ============================================================================
# Dashboard / queue
# ============================================================================

@router.get("/stats", response_model=DashboardStatsOut)
def get_dashboard_stats(
    district:     Optional[str] = Query(default=None),
    current_user: User          = Depends(scheduler_only),
    db:           Session       = Depends(get_db),
):
    return DashboardStatsOut.model_validate(calendar_view.dashboard_stats(db, _district_filter(district)))


@router.get("/unscheduled-requests", response_model=list[ScheduleRequestOut])
def get_unscheduled_requests(
    district:     Optional[str] = Query(default=None),
    current_user: User          = Depends(scheduler_only),
    db:           Session       = Depends(get_db),
):
    return calendar_view.schedule_requests_queue(db, _district_filter(district), is_scheduled=False)


@router.get("/scheduled-cases", response_model=list[ScheduledEntryOut])
def get_scheduled_cases(
    district:     Optional[str]  = Query(default=None),
    start_date:   Optional[date] = Query(default=None),
    end_date:     Optional[date] = Query(default=None),
    current_user: User           = Depends(scheduler_only),
    db:           Session        = Depends(get_db),
):
    return calendar_view.list_scheduled_entries(db, _district_filter(district), start_date, end_date)


@router.get("/timeslots/available", response_model=SlotAvailabilityOut)
def get_available_timeslots(
    district:     str           = Query(...),
    date:         str           = Query(...),
    courtroom:    Optional[str] = Query(default=None),
    current_user: User          = Depends(scheduler_only),
    db:           Session       = Depends(get_db),
):
    district = validate_district(district)
    hearing_date = validate_hearing_date(date, "Date")
    return SlotAvailabilityOut.model_validate(available_slots(db, district, hearing_date, courtroom))


# ============================================================================
# Allocation
# ============================================================================

@router.post("/schedule/{request_id}", response_model=ScheduleResultOut)
def schedule_case(
    request_id:      UUID,
    payload:         ScheduleCaseRequest,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    current_user:    User          = Depends(scheduler_only),
    db:              Session       = Depends(get_db),
):
    """
    Allocates a hearing slot for a pending schedule request.

    A repeated submit carrying the same Idempotency-Key gets the original
    response back; without the key a repeat fails with 409 (already scheduled).
    Reusing a key for another request is also a 409.
    """
    endpoint = f"court-scheduler/schedule/{request_id}"
    cached = get_idempotent_response(idempotency_key, current_user.id, db, endpoint=endpoint)
    if cached:
        status_code, body = cached
        return JSONResponse(body, status_code=status_code)

    entry = scheduler_service.schedule_case(
        db,
        request_id,
        hearing_date=payload.hearing_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        scheduler=current_user,
        courtroom=payload.courtroom,
        notes=payload.notes,
    )
    case = db.query(Case).filter(Case.id == entry.case_id).first()

    result = ScheduleResultOut(
        scheduled_case=ScheduledEntryOut.model_validate(entry),
        case=CaseHearingOut.model_validate(case),
    )
    store_idempotent_response(
        idempotency_key,
        current_user.id,
        200,
        result.model_dump(mode="json"),
        db,
        endpoint=endpoint,
    )
    return result


# ============================================================================
# Calendar / export
# ============================================================================

@router.get("/calendar", response_model=CalendarOut)
def get_calendar(
    district:     Optional[str] = Query(default=None),
    year:         Optional[int] = Query(default=None),
    month:        Optional[int] = Query(default=None),
    current_user: User          = Depends(scheduler_only),
    db:           Session       = Depends(get_db),
):
    district = _district_filter(district)
    year, month = _month_or_today(year, month)
    days = calendar_view.calendar_for_month(db, district, year, month)
    return CalendarOut(
        district="all" if is_all_districts(district) else district,
        year=year,
        month=month,
        total_hearings=sum(len(rows) for rows in days.values()),
        days={day: [row.to_dict() for row in rows] for day, rows in days.items()},
    )


@router.get("/schedules-pdf")
def download_schedules_pdf(
    district:     Optional[str] = Query(default=None),
    year:         Optional[int] = Query(default=None),
    month:        Optional[int] = Query(default=None),
    current_user: User          = Depends(scheduler_only),
    db:           Session       = Depends(get_db),
):
    district = _district_filter(district)
    year, month = _month_or_today(year, month)
    days = calendar_view.calendar_for_month(db, district, year, month)
    pdf_bytes = render_schedule_pdf(district, year, month, days)

    label = "all" if is_all_districts(district) else district.replace(" ", "_")
    filename = f"court_schedules_{label}_{year}_{month:02d}.pdf"
    logger.info("Schedule PDF exported: %s (%d bytes)", filename, len(pdf_bytes))

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
