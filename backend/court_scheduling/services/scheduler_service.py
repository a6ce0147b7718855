"""
services/scheduler_service.py

The allocation engine and the only writer of the three denormalized
hearing records:

  ScheduleRequest   queue entry, closed when a slot is allocated
  ScheduledEntry    the calendar booking
  Case              cached hearing_date / hearing_*_time / courtroom

Called by:
  - api/v1/endpoints/schedule_requests.py  (lawyer asks for a hearing)
  - api/v1/endpoints/court_scheduler.py    (scheduler allocates a slot)
  - services/adjournment_service.py        (shares the partition locks)

Allocation runs as one transaction under the partition lock:
conflict check, entry insert, conditional close of the request, case
update and filing update either all commit or none do.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from court_scheduling.core.config import settings
from court_scheduling.db.models import (
    ACTIVE_ENTRY_STATUSES,
    Case,
    CaseStatus,
    CourtFilingStatus,
    ScheduledEntry,
    ScheduledEntryStatus,
    SchedulePriority,
    ScheduleRequest,
    User,
)
from court_scheduling.services.case_status import transition
from court_scheduling.services.conflict_checker import effective_courtroom, find_conflict
from court_scheduling.services.filing_service import latest_filing_for_case, update_filing_status
from court_scheduling.services.notification_service import ScheduleAllocated, notification_publisher
from court_scheduling.services.partition_lock import PartitionLockRegistry
from court_scheduling.utils.exceptions import (
    AlreadyScheduledError,
    CaseNotFoundError,
    DuplicateScheduleRequestError,
    ForbiddenError,
    InvalidStateError,
    PersistenceFailureError,
    ScheduleRequestNotFoundError,
    SchedulingError,
    SlotConflictError,
)
from court_scheduling.utils.helpers import partition_key
from court_scheduling.utils.validators import validate_hearing_date, validate_time_window

logger = logging.getLogger(__name__)


def current_entry_for_case(db: Session, case_id: UUID) -> Optional[ScheduledEntry]:
    """The active, non-superseded booking of a case (highest sequence number)."""
    return (
        db.query(ScheduledEntry)
        .filter(
            ScheduledEntry.case_id == case_id,
            ScheduledEntry.superseded_by_id.is_(None),
            ScheduledEntry.status.in_(ACTIVE_ENTRY_STATUSES),
        )
        .order_by(ScheduledEntry.sequence_number.desc())
        .first()
    )


def next_sequence_number(db: Session, case_id: UUID) -> int:
    highest = (
        db.query(func.max(ScheduledEntry.sequence_number))
        .filter(ScheduledEntry.case_id == case_id)
        .scalar()
    )
    return (highest or 0) + 1


class SchedulerService:
    def __init__(self, locks: Optional[PartitionLockRegistry] = None):
        self.locks = locks or PartitionLockRegistry()

    # ========================================================================
    # Lawyer: request scheduling
    # ========================================================================

    def request_scheduling(
        self,
        db:      Session,
        case_id: UUID,
        lawyer:  User,
        message: Optional[str] = None,
    ) -> ScheduleRequest:
        """
        Queues a filed case for hearing allocation and moves it to
        scheduling_requested.

        Raises:
            CaseNotFoundError, ForbiddenError (not the assigned lawyer),
            InvalidStateError (case not filed),
            DuplicateScheduleRequestError (open request exists)
        """
        case = db.query(Case).filter(Case.id == case_id).first()
        if not case:
            raise CaseNotFoundError(str(case_id))

        lawyer_id = case.current_lawyer_id
        if lawyer_id != lawyer.id:
            raise ForbiddenError("You are not assigned to this case")

        if case.status != CaseStatus.filed:
            raise InvalidStateError(
                f"Only filed cases can be queued for scheduling (current status: {case.status.value})"
            )

        existing = db.query(ScheduleRequest).filter(
            ScheduleRequest.case_id == case.id,
            ScheduleRequest.is_scheduled == False,
        ).first()
        if existing:
            raise DuplicateScheduleRequestError()

        client = case.client
        filing = latest_filing_for_case(db, case.id)

        request = ScheduleRequest(
            case_id=case.id,
            court_filing_id=filing.id if filing else None,
            district=case.district,
            courtroom=settings.DEFAULT_COURTROOM,
            priority=SchedulePriority.high if case.case_type.lower() == "urgent" else SchedulePriority.medium,
            case_number=case.case_number,
            case_type=case.case_type,
            plaintiff_name=case.plaintiff_name,
            defendant_name=case.defendant_name,
            lawyer_id=lawyer_id,
            lawyer_name=lawyer.name or "Unknown Lawyer",
            client_id=case.client_id,
            client_name=(client.name if client and client.name else "Unknown Client"),
            filed_date=(filing.filed_at if filing and filing.filed_at else datetime.utcnow()),
            request_message=message or "Court hearing scheduling requested",
        )

        try:
            db.add(request)
            transition(
                db, case, CaseStatus.scheduling_requested,
                lawyer_id=lawyer_id, actor_id=lawyer.id, reason=message,
            )
            db.commit()
        except SchedulingError:
            db.rollback()
            raise
        except IntegrityError:
            db.rollback()
            raise DuplicateScheduleRequestError()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to create schedule request for case %s", case_id)
            raise PersistenceFailureError()

        db.refresh(request)
        logger.info(
            "Schedule request %s created for case %s (district=%s, priority=%s)",
            request.id, request.case_number, request.district, request.priority.value,
        )
        return request

    # ========================================================================
    # Scheduler: allocate a slot
    # ========================================================================

    def schedule_case(
        self,
        db:           Session,
        request_id:   UUID,
        hearing_date: Union[date, str, None],
        start_time:   Optional[str],
        end_time:     Optional[str],
        scheduler:    User,
        courtroom:    Optional[str] = None,
        notes:        Optional[str] = None,
    ) -> ScheduledEntry:
        """
        Turns a pending ScheduleRequest into a ScheduledEntry.

        Raises:
            SchedulingValidationError  missing/malformed date or window
            ScheduleRequestNotFoundError
            AlreadyScheduledError      request closed already (also on double submit)
            SlotConflictError          window collides with an active hearing
            InvalidStateError          case not in scheduling_requested / no lawyer
            PersistenceFailureError    storage failed; nothing was written
        """
        hearing_date = validate_hearing_date(hearing_date)
        start_time, end_time = validate_time_window(start_time, end_time)

        request = db.query(ScheduleRequest).filter(ScheduleRequest.id == request_id).first()
        if not request:
            raise ScheduleRequestNotFoundError(str(request_id))
        if request.is_scheduled:
            raise AlreadyScheduledError()

        room = (courtroom or "").strip() or request.courtroom or settings.DEFAULT_COURTROOM
        key = partition_key(request.district, effective_courtroom(room), hearing_date)

        with self.locks.hold(db, key):
            try:
                entry = self._allocate(db, request, hearing_date, start_time, end_time, room, notes, scheduler)
                db.commit()
            except SchedulingError:
                db.rollback()
                raise
            except IntegrityError:
                db.rollback()
                raise self._integrity_outcome(db, request_id)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Allocation for schedule request %s failed; rolled back", request_id)
                raise PersistenceFailureError()

        db.refresh(entry)
        logger.info(
            "Case %s scheduled: district=%s courtroom=%s date=%s %s-%s (entry=%s, by=%s)",
            entry.case_number, entry.district, entry.courtroom, entry.hearing_date,
            entry.start_time, entry.end_time, entry.id, scheduler.id,
        )

        notification_publisher.emit(ScheduleAllocated(
            case_id=entry.case_id,
            case_number=entry.case_number,
            hearing_date=entry.hearing_date,
            start_time=entry.start_time,
            end_time=entry.end_time,
            courtroom=entry.courtroom,
        ))
        return entry

    def _allocate(
        self,
        db:           Session,
        request:      ScheduleRequest,
        hearing_date: date,
        start_time:   str,
        end_time:     str,
        courtroom:    str,
        notes:        Optional[str],
        scheduler:    User,
    ) -> ScheduledEntry:
        if find_conflict(db, request.district, hearing_date, start_time, end_time, courtroom=courtroom):
            raise SlotConflictError()

        case = db.query(Case).filter(Case.id == request.case_id).first()
        if not case:
            raise CaseNotFoundError(str(request.case_id))

        # read once, written back unchanged by the transition below
        lawyer_id = case.current_lawyer_id

        entry = ScheduledEntry(
            schedule_request_id=request.id,
            case_id=case.id,
            sequence_number=next_sequence_number(db, case.id),
            district=request.district,
            courtroom=courtroom,
            hearing_date=hearing_date,
            start_time=start_time,
            end_time=end_time,
            status=ScheduledEntryStatus.scheduled,
            case_number=request.case_number,
            case_type=request.case_type,
            plaintiff_name=request.plaintiff_name,
            defendant_name=request.defendant_name,
            lawyer_id=request.lawyer_id,
            lawyer_name=request.lawyer_name,
            client_id=request.client_id,
            client_name=request.client_name,
            scheduled_by=scheduler.id,
            scheduling_notes=notes,
            estimated_duration=request.estimated_duration,
        )
        db.add(entry)
        db.flush()

        closed = (
            db.query(ScheduleRequest)
            .filter(ScheduleRequest.id == request.id, ScheduleRequest.is_scheduled == False)
            .update(
                {
                    ScheduleRequest.is_scheduled: True,
                    ScheduleRequest.scheduled_date: hearing_date,
                    ScheduleRequest.scheduled_start_time: start_time,
                    ScheduleRequest.scheduled_end_time: end_time,
                    ScheduleRequest.scheduled_by: scheduler.id,
                    ScheduleRequest.scheduling_notes: notes,
                    ScheduleRequest.updated_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
        )
        if closed != 1:
            raise AlreadyScheduledError()

        case.hearing_date = hearing_date
        case.hearing_start_time = start_time
        case.hearing_end_time = end_time
        case.courtroom = courtroom
        transition(
            db, case, CaseStatus.hearing_scheduled,
            lawyer_id=lawyer_id, actor_id=scheduler.id,
            reason=f"Hearing scheduled for {hearing_date.isoformat()} {start_time}-{end_time} in {courtroom}",
        )

        update_filing_status(
            db,
            request.court_filing_id,
            CourtFilingStatus.scheduled,
            hearing_date=hearing_date,
            scheduled_by=scheduler.id,
            notes=notes,
        )
        return entry

    def _integrity_outcome(self, db: Session, request_id: UUID) -> SchedulingError:
        """Maps a unique-index violation at commit to the domain outcome."""
        already = (
            db.query(ScheduleRequest.is_scheduled)
            .filter(ScheduleRequest.id == request_id)
            .scalar()
        )
        if already:
            return AlreadyScheduledError()
        return SlotConflictError()


scheduler_service = SchedulerService()
