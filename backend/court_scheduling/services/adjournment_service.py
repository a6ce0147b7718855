"""
services/adjournment_service.py

Client-initiated requests to move a scheduled hearing, and the
scheduler's accept / reject decision.

Called by:
  - api/v1/endpoints/adjournments.py

Accepting a request re-schedules the case: the current ScheduledEntry is
marked adjourned and superseded by a newly appended entry, the Case cached
hearing fields follow, and the request is closed. One transaction, under
the same partition locks the scheduler uses for first-time allocation.
Rejecting touches nothing but the request.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from court_scheduling.db.models import (
    AdjournmentRequest,
    AdjournmentStatus,
    AdjournmentUrgency,
    Case,
    CaseStatus,
    ScheduledEntry,
    ScheduledEntryStatus,
    User,
)
from court_scheduling.services.case_status import transition
from court_scheduling.services.conflict_checker import effective_courtroom, find_conflict
from court_scheduling.services.notification_service import AdjournmentResolved, notification_publisher
from court_scheduling.services.scheduler_service import (
    current_entry_for_case,
    next_sequence_number,
    scheduler_service,
)
from court_scheduling.utils.exceptions import (
    AdjournmentRequestNotFoundError,
    CaseNotFoundError,
    DuplicatePendingRequestError,
    ForbiddenError,
    InvalidStateError,
    PersistenceFailureError,
    SchedulingError,
    SchedulingValidationError,
    SlotConflictError,
)
from court_scheduling.utils.helpers import partition_key
from court_scheduling.utils.validators import validate_hearing_date, validate_time, validate_time_window

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500
MAX_NOTES_LENGTH = 500

_ALREADY_PROCESSED = "This request has already been processed"


def _parse_urgency(urgency: Optional[str]) -> AdjournmentUrgency:
    if not urgency:
        return AdjournmentUrgency.medium
    try:
        return AdjournmentUrgency(urgency)
    except ValueError:
        raise SchedulingValidationError(
            f"Urgency must be one of: {', '.join(u.value for u in AdjournmentUrgency)}"
        )


def _check_notes(notes: Optional[str]) -> Optional[str]:
    if notes and len(notes) > MAX_NOTES_LENGTH:
        raise SchedulingValidationError(f"Notes must be at most {MAX_NOTES_LENGTH} characters")
    return notes


def _preferred_window(start: Optional[str], end: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    if start and end:
        return validate_time_window(start, end)
    return (
        validate_time(start, "Preferred start time") if start else None,
        validate_time(end, "Preferred end time") if end else None,
    )


# ============================================================================
# Client: create
# ============================================================================

def create_adjournment_request(
    db:              Session,
    case_id:         UUID,
    client:          User,
    preferred_date:  Union[date, str, None],
    reason:          Optional[str],
    preferred_start: Optional[str] = None,
    preferred_end:   Optional[str] = None,
    urgency:         Optional[str] = None,
) -> AdjournmentRequest:
    """
    Records a client's wish to move the hearing of one of their cases.

    The current hearing window is snapshotted so the scheduler sees what
    the client asked to move even after the calendar changes.
    """
    preferred_date = validate_hearing_date(preferred_date, "Preferred date")
    if not reason or not reason.strip():
        raise SchedulingValidationError("Reason is required")
    reason = reason.strip()
    if len(reason) > MAX_REASON_LENGTH:
        raise SchedulingValidationError(f"Reason must be at most {MAX_REASON_LENGTH} characters")
    preferred_start, preferred_end = _preferred_window(preferred_start, preferred_end)
    urgency_value = _parse_urgency(urgency)

    case = db.query(Case).filter(Case.id == case_id).first()
    if not case:
        raise CaseNotFoundError(str(case_id))
    if case.client_id != client.id:
        raise ForbiddenError("Access denied to this case")
    if case.status != CaseStatus.hearing_scheduled:
        raise InvalidStateError("Only scheduled cases can request adjournment")

    current = current_entry_for_case(db, case.id)
    if not current:
        raise InvalidStateError("No scheduled hearing found for this case")

    pending = db.query(AdjournmentRequest).filter(
        AdjournmentRequest.case_id == case.id,
        AdjournmentRequest.status == AdjournmentStatus.pending,
    ).first()
    if pending:
        raise DuplicatePendingRequestError()

    request = AdjournmentRequest(
        case_id=case.id,
        client_id=client.id,
        lawyer_id=case.current_lawyer_id,
        original_hearing_date=current.hearing_date,
        original_start_time=current.start_time,
        original_end_time=current.end_time,
        preferred_date=preferred_date,
        preferred_start_time=preferred_start,
        preferred_end_time=preferred_end,
        reason=reason,
        urgency=urgency_value,
        status=AdjournmentStatus.pending,
        submitted_at=datetime.utcnow(),
    )

    try:
        db.add(request)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicatePendingRequestError()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to store adjournment request for case %s", case_id)
        raise PersistenceFailureError()

    db.refresh(request)
    logger.info(
        "Adjournment request %s submitted for case %s: %s -> %s (urgency=%s)",
        request.id, case.case_number, current.hearing_date, preferred_date, urgency_value.value,
    )
    return request


# ============================================================================
# Scheduler: decide
# ============================================================================

def accept_adjournment_request(
    db:         Session,
    request_id: UUID,
    new_date:   Union[date, str, None],
    scheduler:  User,
    new_start:  Optional[str] = None,
    new_end:    Optional[str] = None,
    notes:      Optional[str] = None,
) -> AdjournmentRequest:
    """
    Moves the hearing to new_date. Times default to the current window;
    a new window needs both start and end.

    Raises:
        SchedulingValidationError        new date missing / malformed window
        AdjournmentRequestNotFoundError
        InvalidStateError                already decided, or no current hearing
        SlotConflictError                new window collides with another hearing
        PersistenceFailureError
    """
    if new_date is None or new_date == "":
        raise SchedulingValidationError("New hearing date is required")
    new_date = validate_hearing_date(new_date, "New hearing date")
    if bool(new_start) != bool(new_end):
        raise SchedulingValidationError(
            "Provide both a new start and end time, or neither to keep the current times"
        )
    notes = _check_notes(notes)

    request = db.query(AdjournmentRequest).filter(AdjournmentRequest.id == request_id).first()
    if not request:
        raise AdjournmentRequestNotFoundError(str(request_id))
    if request.status != AdjournmentStatus.pending:
        raise InvalidStateError(_ALREADY_PROCESSED)

    current = current_entry_for_case(db, request.case_id)
    if not current:
        raise InvalidStateError("No scheduled hearing found for this case")

    start_time, end_time = validate_time_window(
        new_start or current.start_time,
        new_end or current.end_time,
    )

    key = partition_key(current.district, effective_courtroom(current.courtroom), new_date)

    with scheduler_service.locks.hold(db, key):
        try:
            replacement = _reschedule(db, request, current, new_date, start_time, end_time, notes, scheduler)
            db.commit()
        except SchedulingError:
            db.rollback()
            raise
        except IntegrityError:
            db.rollback()
            status = (
                db.query(AdjournmentRequest.status)
                .filter(AdjournmentRequest.id == request_id)
                .scalar()
            )
            if status != AdjournmentStatus.pending:
                raise InvalidStateError(_ALREADY_PROCESSED)
            raise SlotConflictError()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Accepting adjournment request %s failed; rolled back", request_id)
            raise PersistenceFailureError()

    db.refresh(request)
    logger.info(
        "Adjournment request %s accepted: case %s moved to %s %s-%s (entry=%s, by=%s)",
        request.id, replacement.case_number, new_date, start_time, end_time,
        replacement.id, scheduler.id,
    )

    notification_publisher.emit(AdjournmentResolved(
        case_id=request.case_id,
        adjournment_request_id=request.id,
        accepted=True,
        new_date=new_date,
        new_start_time=start_time,
        new_end_time=end_time,
    ))
    return request


def _reschedule(
    db:         Session,
    request:    AdjournmentRequest,
    current:    ScheduledEntry,
    new_date:   date,
    start_time: str,
    end_time:   str,
    notes:      Optional[str],
    scheduler:  User,
) -> ScheduledEntry:
    if find_conflict(
        db, current.district, new_date, start_time, end_time,
        courtroom=current.courtroom, exclude_entry_id=current.id,
    ):
        raise SlotConflictError()

    now = datetime.utcnow()
    decided = (
        db.query(AdjournmentRequest)
        .filter(
            AdjournmentRequest.id == request.id,
            AdjournmentRequest.status == AdjournmentStatus.pending,
        )
        .update(
            {
                AdjournmentRequest.status: AdjournmentStatus.accepted,
                AdjournmentRequest.new_hearing_date: new_date,
                AdjournmentRequest.new_start_time: start_time,
                AdjournmentRequest.new_end_time: end_time,
                AdjournmentRequest.scheduler_notes: notes,
                AdjournmentRequest.reviewed_at: now,
                AdjournmentRequest.reviewed_by: scheduler.id,
                AdjournmentRequest.updated_at: now,
            },
            synchronize_session=False,
        )
    )
    if decided != 1:
        raise InvalidStateError(_ALREADY_PROCESSED)

    case = db.query(Case).filter(Case.id == current.case_id).first()
    if not case:
        raise CaseNotFoundError(str(current.case_id))
    lawyer_id = case.current_lawyer_id

    # the old booking leaves the active set before its replacement is inserted
    current.status = ScheduledEntryStatus.adjourned
    db.flush()

    replacement = ScheduledEntry(
        schedule_request_id=current.schedule_request_id,
        case_id=current.case_id,
        sequence_number=next_sequence_number(db, current.case_id),
        district=current.district,
        courtroom=current.courtroom,
        hearing_date=new_date,
        start_time=start_time,
        end_time=end_time,
        status=ScheduledEntryStatus.scheduled,
        case_number=current.case_number,
        case_type=current.case_type,
        plaintiff_name=current.plaintiff_name,
        defendant_name=current.defendant_name,
        lawyer_id=current.lawyer_id,
        lawyer_name=current.lawyer_name,
        client_id=current.client_id,
        client_name=current.client_name,
        scheduled_by=scheduler.id,
        scheduling_notes=notes,
        estimated_duration=current.estimated_duration,
    )
    db.add(replacement)
    db.flush()

    current.superseded_by_id = replacement.id

    case.hearing_date = new_date
    case.hearing_start_time = start_time
    case.hearing_end_time = end_time
    case.courtroom = current.courtroom
    transition(
        db, case, CaseStatus.hearing_scheduled,
        lawyer_id=lawyer_id, actor_id=scheduler.id,
        reason=f"Adjourned from {current.hearing_date.isoformat()} to {new_date.isoformat()}",
    )
    return replacement


def reject_adjournment_request(
    db:         Session,
    request_id: UUID,
    scheduler:  User,
    notes:      Optional[str] = None,
) -> AdjournmentRequest:
    """Closes the request as rejected. The hearing stays where it is."""
    notes = _check_notes(notes)

    request = db.query(AdjournmentRequest).filter(AdjournmentRequest.id == request_id).first()
    if not request:
        raise AdjournmentRequestNotFoundError(str(request_id))
    if request.status != AdjournmentStatus.pending:
        raise InvalidStateError(_ALREADY_PROCESSED)

    now = datetime.utcnow()
    try:
        decided = (
            db.query(AdjournmentRequest)
            .filter(
                AdjournmentRequest.id == request.id,
                AdjournmentRequest.status == AdjournmentStatus.pending,
            )
            .update(
                {
                    AdjournmentRequest.status: AdjournmentStatus.rejected,
                    AdjournmentRequest.scheduler_notes: notes,
                    AdjournmentRequest.reviewed_at: now,
                    AdjournmentRequest.reviewed_by: scheduler.id,
                    AdjournmentRequest.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if decided != 1:
            raise InvalidStateError(_ALREADY_PROCESSED)
        db.commit()
    except SchedulingError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Rejecting adjournment request %s failed; rolled back", request_id)
        raise PersistenceFailureError()

    db.refresh(request)
    logger.info("Adjournment request %s rejected by %s", request.id, scheduler.id)

    notification_publisher.emit(AdjournmentResolved(
        case_id=request.case_id,
        adjournment_request_id=request.id,
        accepted=False,
    ))
    return request


# ============================================================================
# Read
# ============================================================================

def list_adjournment_requests(
    db:     Session,
    status: Optional[str] = None,
) -> list[AdjournmentRequest]:
    """All requests, newest first. status='all' or None disables the filter."""
    query = db.query(AdjournmentRequest)
    if status and status != "all":
        try:
            query = query.filter(AdjournmentRequest.status == AdjournmentStatus(status))
        except ValueError:
            raise SchedulingValidationError(
                f"Status must be one of: {', '.join(s.value for s in AdjournmentStatus)}"
            )
    return query.order_by(AdjournmentRequest.submitted_at.desc()).all()


def list_client_requests(db: Session, client_id: UUID) -> list[AdjournmentRequest]:
    return (
        db.query(AdjournmentRequest)
        .filter(AdjournmentRequest.client_id == client_id)
        .order_by(AdjournmentRequest.submitted_at.desc())
        .all()
    )


def get_adjournment_request(db: Session, request_id: UUID) -> AdjournmentRequest:
    request = db.query(AdjournmentRequest).filter(AdjournmentRequest.id == request_id).first()
    if not request:
        raise AdjournmentRequestNotFoundError(str(request_id))
    return request
