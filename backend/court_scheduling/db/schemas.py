"""
Pydantic validation schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import date, datetime
from uuid import UUID

from court_scheduling.db.models import (
    AdjournmentStatus,
    AdjournmentUrgency,
    CaseStatus,
    ScheduledEntryStatus,
    SchedulePriority,
    ScheduleRequestType,
    UserRole,
)

# ============================================================================
# User Schemas
# ============================================================================

class UserOut(BaseModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    is_active: bool

    class Config:
        from_attributes = True


# ============================================================================
# Case Schemas
# ============================================================================

class CaseHearingOut(BaseModel):
    """Case with its cached hearing fields"""
    id: UUID
    case_number: str
    case_type: str
    district: str
    status: CaseStatus
    client_id: UUID
    current_lawyer_id: Optional[UUID] = None
    hearing_date: Optional[date] = None
    hearing_start_time: Optional[str] = None
    hearing_end_time: Optional[str] = None
    courtroom: Optional[str] = None

    class Config:
        from_attributes = True


# ============================================================================
# Scheduling Schemas
# ============================================================================

class ScheduleRequestOut(BaseModel):
    id: UUID
    case_id: UUID
    court_filing_id: Optional[UUID] = None
    request_type: ScheduleRequestType
    district: str
    courtroom: str
    priority: SchedulePriority
    is_scheduled: bool
    scheduled_date: Optional[date] = None
    scheduled_start_time: Optional[str] = None
    scheduled_end_time: Optional[str] = None
    case_number: str
    case_type: str
    plaintiff_name: str
    defendant_name: str
    lawyer_id: UUID
    lawyer_name: str
    client_id: UUID
    client_name: str
    filed_date: datetime
    estimated_duration: int
    request_message: str
    created_at: datetime

    class Config:
        from_attributes = True


class ScheduledEntryOut(BaseModel):
    id: UUID
    schedule_request_id: UUID
    case_id: UUID
    sequence_number: int
    district: str
    courtroom: str
    hearing_date: date
    start_time: str
    end_time: str
    status: ScheduledEntryStatus
    superseded_by_id: Optional[UUID] = None
    case_number: str
    case_type: str
    plaintiff_name: Optional[str] = None
    defendant_name: Optional[str] = None
    lawyer_id: Optional[UUID] = None
    lawyer_name: Optional[str] = None
    client_id: Optional[UUID] = None
    client_name: Optional[str] = None
    scheduled_by: UUID
    scheduling_notes: Optional[str] = None
    estimated_duration: int
    created_at: datetime

    class Config:
        from_attributes = True


class TimeSlotOut(BaseModel):
    start_time: str
    end_time: str

    class Config:
        from_attributes = True


class OccupiedSlotOut(TimeSlotOut):
    courtroom: str
    case_number: Optional[str] = None


class SlotAvailabilityOut(BaseModel):
    district: str
    date: date
    courtroom: Optional[str] = None
    available_slots: List[TimeSlotOut]
    occupied_slots: List[OccupiedSlotOut]
    total_slots: int
    available_count: int

    class Config:
        from_attributes = True


class HearingSummaryOut(BaseModel):
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

    class Config:
        from_attributes = True


class CalendarOut(BaseModel):
    district: str
    year: int
    month: int
    total_hearings: int
    days: Dict[str, List[HearingSummaryOut]]


class DashboardStatsOut(BaseModel):
    unscheduled_count: int
    scheduled_this_month: int
    todays_hearings: int
    pending_adjournments: int
    priority_breakdown: Dict[str, int]

    class Config:
        from_attributes = True


class ScheduleResultOut(BaseModel):
    """Response of a successful allocation"""
    message: str = "Case scheduled successfully"
    scheduled_case: ScheduledEntryOut
    case: CaseHearingOut


# ============================================================================
# Adjournment Schemas
# ============================================================================

class AdjournmentRequestOut(BaseModel):
    id: UUID
    case_id: UUID
    case_number: Optional[str] = None
    client_id: UUID
    client_name: Optional[str] = None
    lawyer_id: Optional[UUID] = None
    lawyer_name: Optional[str] = None
    original_hearing_date: date
    original_start_time: Optional[str] = None
    original_end_time: Optional[str] = None
    preferred_date: date
    preferred_start_time: Optional[str] = None
    preferred_end_time: Optional[str] = None
    reason: str = Field(..., max_length=500)
    urgency: AdjournmentUrgency
    status: AdjournmentStatus
    new_hearing_date: Optional[date] = None
    new_start_time: Optional[str] = None
    new_end_time: Optional[str] = None
    scheduler_notes: Optional[str] = None
    submitted_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[UUID] = None

    class Config:
        from_attributes = True
