"""
SQLAlchemy ORM Models
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import relationship

from court_scheduling.db.database import Base

# ============================================================================
# Enums
# ============================================================================

class UserRole(str, enum.Enum):
    """User roles"""
    client = "client"
    lawyer = "lawyer"
    court_scheduler = "court_scheduler"


class CaseStatus(str, enum.Enum):
    """Case lifecycle status"""
    draft = "draft"
    pending = "pending"
    verified = "verified"
    lawyer_requested = "lawyer_requested"
    lawyer_assigned = "lawyer_assigned"
    filing_requested = "filing_requested"
    filed = "filed"
    scheduling_requested = "scheduling_requested"
    hearing_scheduled = "hearing_scheduled"
    completed = "completed"
    rejected = "rejected"


class CourtFilingStatus(str, enum.Enum):
    draft = "draft"
    submitted = "submitted"
    confirmed = "confirmed"
    rejected = "rejected"
    filed = "filed"
    scheduled = "scheduled"
    hearing_completed = "hearing_completed"


class ScheduleRequestType(str, enum.Enum):
    normal_hearing = "normal_hearing"


class SchedulePriority(str, enum.Enum):
    high = "high"
    medium = "medium"
    low = "low"


class ScheduledEntryStatus(str, enum.Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    adjourned = "adjourned"
    cancelled = "cancelled"


# Entries in these states hold their slot
ACTIVE_ENTRY_STATUSES = (ScheduledEntryStatus.scheduled, ScheduledEntryStatus.in_progress)


class AdjournmentStatus(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class AdjournmentUrgency(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# ============================================================================
# Models
# ============================================================================

class User(Base):
    """Identity row for clients, lawyers and court schedulers"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Case(Base):
    """Legal case with cached hearing fields mirroring the current calendar entry"""
    __tablename__ = "cases"
    __table_args__ = (
        Index("ix_cases_district_status", "district", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Case Identification
    case_number = Column(String(30), unique=True, nullable=False)
    case_type = Column(String(100), nullable=False)
    district = Column(String(50), nullable=False)

    # Party Information
    plaintiff_name = Column(String(255), nullable=False)
    defendant_name = Column(String(255), nullable=False)

    # Ownership
    client_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    current_lawyer_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)

    # Status
    status = Column(SQLEnum(CaseStatus, name="case_status"), nullable=False, default=CaseStatus.pending)

    # Cached hearing fields (written only by the scheduler and adjournment services)
    hearing_date = Column(Date, nullable=True)
    hearing_start_time = Column(String(5), nullable=True)
    hearing_end_time = Column(String(5), nullable=True)
    courtroom = Column(String(100), nullable=True)

    # Timestamps
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    client = relationship("User", foreign_keys=[client_id])
    current_lawyer = relationship("User", foreign_keys=[current_lawyer_id])
    status_history = relationship(
        "CaseStatusHistory",
        back_populates="case",
        order_by="CaseStatusHistory.created_at",
    )
    court_filings = relationship("CourtFiling", back_populates="case")


class CaseStatusHistory(Base):
    """Append-only record of every case status transition."""
    __tablename__ = "case_status_history"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id"), nullable=False, index=True)
    from_status = Column(String(50), nullable=True)
    to_status = Column(String(50), nullable=False)
    actor_id = Column(Uuid, nullable=True)
    reason = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)

    case = relationship("Case", back_populates="status_history")


class CourtFiling(Base):
    """Submission of a case to a physical court."""
    __tablename__ = "court_filings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id"), nullable=False, index=True)
    lawyer_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    court_name = Column(String(255), nullable=True)
    district = Column(String(50), nullable=True)
    filing_type = Column(String(100), nullable=True)
    court_reference = Column(String(100), nullable=True)

    status = Column(SQLEnum(CourtFilingStatus, name="court_filing_status"), nullable=False, default=CourtFilingStatus.draft)
    filed_at = Column(TIMESTAMP, nullable=True)
    hearing_date = Column(Date, nullable=True)
    scheduled_by = Column(Uuid, nullable=True)
    scheduling_notes = Column(Text, nullable=True)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="court_filings")


class ScheduleRequest(Base):
    """Queue entry: a filed case waiting for a hearing date."""
    __tablename__ = "schedule_requests"
    __table_args__ = (
        Index("ix_schedule_requests_district_scheduled", "district", "is_scheduled"),
        Index("ix_schedule_requests_created", "created_at"),
        # at most one open request per case
        Index(
            "uq_schedule_requests_open_case",
            "case_id",
            unique=True,
            postgresql_where=text("is_scheduled = false"),
            sqlite_where=text("is_scheduled = 0"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id"), nullable=False)
    court_filing_id = Column(Uuid, ForeignKey("court_filings.id"), nullable=True)

    request_type = Column(SQLEnum(ScheduleRequestType, name="schedule_request_type"), nullable=False, default=ScheduleRequestType.normal_hearing)
    district = Column(String(50), nullable=False)
    courtroom = Column(String(100), nullable=False, default="Main Court")
    priority = Column(SQLEnum(SchedulePriority, name="schedule_priority"), nullable=False, default=SchedulePriority.medium)

    # Scheduling outcome
    is_scheduled = Column(Boolean, nullable=False, default=False)
    scheduled_date = Column(Date, nullable=True)
    scheduled_start_time = Column(String(5), nullable=True)
    scheduled_end_time = Column(String(5), nullable=True)
    scheduled_by = Column(Uuid, nullable=True)
    scheduling_notes = Column(Text, nullable=True)

    # Case details for queue listing without joins
    case_number = Column(String(30), nullable=False)
    case_type = Column(String(100), nullable=False)
    plaintiff_name = Column(String(255), nullable=False)
    defendant_name = Column(String(255), nullable=False)
    lawyer_id = Column(Uuid, nullable=False)
    lawyer_name = Column(String(255), nullable=False)
    client_id = Column(Uuid, nullable=False)
    client_name = Column(String(255), nullable=False)

    filed_date = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    estimated_duration = Column(Integer, nullable=False, default=60)  # minutes
    request_message = Column(Text, nullable=False, default="Court hearing scheduling requested")

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case")
    court_filing = relationship("CourtFiling")


class ScheduledEntry(Base):
    """
    Calendar booking: this case occupies this courtroom at this time.

    Append-only per case. An adjournment appends a new entry and marks the
    previous one adjourned with superseded_by_id pointing at its replacement.
    """
    __tablename__ = "scheduled_entries"
    __table_args__ = (
        UniqueConstraint("case_id", "sequence_number", name="uq_scheduled_entries_case_seq"),
        Index("ix_scheduled_entries_district_date", "district", "hearing_date"),
        Index("ix_scheduled_entries_date_start", "hearing_date", "start_time"),
        Index("ix_scheduled_entries_status", "status"),
        # no two active bookings for the identical window
        Index(
            "uq_scheduled_entries_active_slot",
            "district",
            "courtroom",
            "hearing_date",
            "start_time",
            "end_time",
            unique=True,
            postgresql_where=text("status IN ('scheduled', 'in_progress')"),
            sqlite_where=text("status IN ('scheduled', 'in_progress')"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    schedule_request_id = Column(Uuid, ForeignKey("schedule_requests.id"), nullable=False)
    case_id = Column(Uuid, ForeignKey("cases.id"), nullable=False, index=True)
    sequence_number = Column(Integer, nullable=False, default=1)

    district = Column(String(50), nullable=False)
    courtroom = Column(String(100), nullable=False)
    hearing_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # "09:00"
    end_time = Column(String(5), nullable=False)  # "10:00"

    status = Column(SQLEnum(ScheduledEntryStatus, name="scheduled_entry_status"), nullable=False, default=ScheduledEntryStatus.scheduled)
    superseded_by_id = Column(Uuid, ForeignKey("scheduled_entries.id"), nullable=True)

    # Case details
    case_number = Column(String(30), nullable=False)
    case_type = Column(String(100), nullable=False)
    plaintiff_name = Column(String(255), nullable=True)
    defendant_name = Column(String(255), nullable=True)
    lawyer_id = Column(Uuid, nullable=True, index=True)
    lawyer_name = Column(String(255), nullable=True)
    client_id = Column(Uuid, nullable=True, index=True)
    client_name = Column(String(255), nullable=True)

    # Scheduling details
    scheduled_by = Column(Uuid, nullable=False)
    scheduling_notes = Column(Text, nullable=True)
    estimated_duration = Column(Integer, nullable=False, default=60)

    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    schedule_request = relationship("ScheduleRequest")
    case = relationship("Case")
    superseded_by = relationship("ScheduledEntry", remote_side=[id])

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_ENTRY_STATUSES


class AdjournmentRequest(Base):
    """Client proposal to move a scheduled hearing."""
    __tablename__ = "adjournment_requests"
    __table_args__ = (
        Index("ix_adjournment_requests_client_status", "client_id", "status"),
        Index("ix_adjournment_requests_status_submitted", "status", "submitted_at"),
        # one pending request per case
        Index(
            "uq_adjournment_requests_pending_case",
            "case_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid, ForeignKey("cases.id"), nullable=False)
    client_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    lawyer_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    # Snapshot at request time
    original_hearing_date = Column(Date, nullable=False)
    original_start_time = Column(String(5), nullable=True)
    original_end_time = Column(String(5), nullable=True)

    preferred_date = Column(Date, nullable=False)
    preferred_start_time = Column(String(5), nullable=True)
    preferred_end_time = Column(String(5), nullable=True)

    reason = Column(String(500), nullable=False)
    urgency = Column(SQLEnum(AdjournmentUrgency, name="adjournment_urgency"), nullable=False, default=AdjournmentUrgency.medium)
    status = Column(SQLEnum(AdjournmentStatus, name="adjournment_status"), nullable=False, default=AdjournmentStatus.pending)

    # Scheduler decision
    new_hearing_date = Column(Date, nullable=True)
    new_start_time = Column(String(5), nullable=True)
    new_end_time = Column(String(5), nullable=True)
    scheduler_notes = Column(String(500), nullable=True)
    reviewed_at = Column(TIMESTAMP, nullable=True)
    reviewed_by = Column(Uuid, ForeignKey("users.id"), nullable=True)

    submitted_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case")
    client = relationship("User", foreign_keys=[client_id])
    lawyer = relationship("User", foreign_keys=[lawyer_id])


class IdempotencyRecord(Base):
    """Cached response for a side-effecting request, keyed by client-supplied key."""
    __tablename__ = "idempotency_records"
    __table_args__ = (
        UniqueConstraint("idempotency_key", "user_id", name="uq_idempotency_key_user"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    idempotency_key = Column(String(255), nullable=False)
    user_id = Column(Uuid, nullable=False, index=True)
    endpoint = Column(String(255), nullable=False, default="")
    status_code = Column(Integer, nullable=False)
    response_body = Column(JSON, nullable=False, default=dict)
    created_at = Column(TIMESTAMP, nullable=False, default=datetime.utcnow)
    expires_at = Column(TIMESTAMP, nullable=False, index=True)
