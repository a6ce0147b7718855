"""Integration tests for the request -> allocate workflow.

Runs the scheduler service against a real (in-memory) database and checks
the queue, the calendar entry, the case and the court filing move together.
"""

import uuid
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from court_scheduling.db.models import (
    Case,
    CaseStatus,
    CaseStatusHistory,
    CourtFiling,
    CourtFilingStatus,
    ScheduledEntry,
    SchedulePriority,
    ScheduleRequest,
)
from court_scheduling.services import scheduler_service as scheduler_module
from court_scheduling.services.notification_service import ScheduleAllocated, notification_publisher
from court_scheduling.services.scheduler_service import current_entry_for_case, scheduler_service
from court_scheduling.utils.exceptions import (
    AlreadyScheduledError,
    CaseNotFoundError,
    DuplicateScheduleRequestError,
    ForbiddenError,
    InvalidStateError,
    PersistenceFailureError,
    ScheduleRequestNotFoundError,
    SchedulingValidationError,
    SlotConflictError,
)


def _schedule(db, request, scheduler, hearing_date="2025-03-10", start="09:00", end="10:00", courtroom="Court-1"):
    return scheduler_service.schedule_case(
        db, request.id,
        hearing_date=hearing_date, start_time=start, end_time=end,
        scheduler=scheduler, courtroom=courtroom,
    )


@pytest.mark.integration
class TestRequestScheduling:
    """Test the lawyer's scheduling request."""

    def test_creates_request_and_moves_case(self, db, make_filed_case, lawyer, client_user):
        """Test a filed case is queued with denormalized details."""
        case = make_filed_case()

        request = scheduler_service.request_scheduling(db, case.id, lawyer, message="Urgent listing")

        assert request.is_scheduled is False
        assert request.case_number == case.case_number
        assert request.lawyer_name == lawyer.name
        assert request.client_name == client_user.name
        assert request.courtroom == "Main Court"
        assert request.priority == SchedulePriority.medium
        assert request.court_filing_id is not None
        db.refresh(case)
        assert case.status == CaseStatus.scheduling_requested
        assert case.current_lawyer_id == lawyer.id

    def test_urgent_case_type_gets_high_priority(self, db, make_filed_case, lawyer):
        case = make_filed_case(case_type="urgent")

        request = scheduler_service.request_scheduling(db, case.id, lawyer)

        assert request.priority == SchedulePriority.high

    def test_case_without_filing_is_still_queued(self, db, make_filed_case, lawyer):
        case = make_filed_case(with_filing=False)

        request = scheduler_service.request_scheduling(db, case.id, lawyer)

        assert request.court_filing_id is None

    def test_unknown_case(self, db, lawyer):
        with pytest.raises(CaseNotFoundError):
            scheduler_service.request_scheduling(db, uuid.uuid4(), lawyer)

    def test_only_assigned_lawyer(self, db, make_filed_case, other_lawyer):
        case = make_filed_case()

        with pytest.raises(ForbiddenError):
            scheduler_service.request_scheduling(db, case.id, other_lawyer)

    def test_case_must_be_filed(self, db, make_filed_case, lawyer):
        case = make_filed_case()
        case.status = CaseStatus.lawyer_assigned
        db.commit()

        with pytest.raises(InvalidStateError):
            scheduler_service.request_scheduling(db, case.id, lawyer)

    def test_second_open_request_rejected(self, db, make_filed_case, lawyer):
        """Test at most one unscheduled request per case."""
        case = make_filed_case()
        scheduler_service.request_scheduling(db, case.id, lawyer)

        # put the case back to filed to get past the status guard
        case.status = CaseStatus.filed
        db.commit()

        with pytest.raises(DuplicateScheduleRequestError) as exc:
            scheduler_service.request_scheduling(db, case.id, lawyer)
        assert exc.value.status_code == 409
        assert db.query(ScheduleRequest).filter(ScheduleRequest.case_id == case.id).count() == 1


@pytest.mark.integration
class TestScheduleCase:
    """Test slot allocation."""

    def test_allocation_updates_all_records(self, db, queue_case, scheduler, lawyer):
        """Test entry, request, case, filing and history are written together."""
        request = queue_case()

        entry = _schedule(db, request, scheduler)

        assert entry.sequence_number == 1
        assert entry.courtroom == "Court-1"
        assert entry.hearing_date == date(2025, 3, 10)
        assert (entry.start_time, entry.end_time) == ("09:00", "10:00")
        assert entry.scheduled_by == scheduler.id

        db.refresh(request)
        assert request.is_scheduled is True
        assert request.scheduled_date == date(2025, 3, 10)

        case = db.query(Case).filter(Case.id == entry.case_id).one()
        assert case.status == CaseStatus.hearing_scheduled
        assert case.hearing_date == date(2025, 3, 10)
        assert (case.hearing_start_time, case.hearing_end_time) == ("09:00", "10:00")
        assert case.courtroom == "Court-1"
        assert case.current_lawyer_id == lawyer.id

        filing = db.query(CourtFiling).filter(CourtFiling.id == request.court_filing_id).one()
        assert filing.status == CourtFilingStatus.scheduled
        assert filing.hearing_date == date(2025, 3, 10)

        transitions = {
            (h.from_status, h.to_status) for h in
            db.query(CaseStatusHistory).filter(CaseStatusHistory.case_id == case.id)
        }
        assert transitions == {
            ("filed", "scheduling_requested"),
            ("scheduling_requested", "hearing_scheduled"),
        }
        assert current_entry_for_case(db, case.id).id == entry.id

    def test_courtroom_defaults_to_request_preference(self, db, queue_case, scheduler):
        request = queue_case()

        entry = _schedule(db, request, scheduler, courtroom=None)

        assert entry.courtroom == "Main Court"

    def test_same_slot_conflicts(self, db, scheduled_case, queue_case, scheduler):
        """Test a second case cannot take CL2025-0001's slot."""
        second = queue_case()

        with pytest.raises(SlotConflictError) as exc:
            _schedule(db, second, scheduler)

        assert exc.value.status_code == 409
        db.refresh(second)
        assert second.is_scheduled is False
        assert db.query(ScheduledEntry).count() == 1

    def test_partial_overlap_conflicts(self, db, scheduled_case, queue_case, scheduler):
        second = queue_case()

        with pytest.raises(SlotConflictError):
            _schedule(db, second, scheduler, start="09:30", end="10:30")

    def test_back_to_back_allowed(self, db, scheduled_case, queue_case, scheduler):
        second = queue_case()

        entry = _schedule(db, second, scheduler, start="10:00", end="11:00")

        assert entry.start_time == "10:00"

    def test_other_courtroom_allowed(self, db, scheduled_case, queue_case, scheduler):
        second = queue_case()

        entry = _schedule(db, second, scheduler, courtroom="Court-2")

        assert entry.courtroom == "Court-2"

    def test_no_double_booking_over_many_requests(self, db, queue_case, scheduler):
        """Test a burst of allocations never leaves overlapping active entries."""
        windows = [("09:00", "10:00"), ("09:30", "10:30"), ("10:00", "11:00"),
                   ("10:30", "11:30"), ("09:00", "10:00"), ("11:00", "12:00")]
        for start, end in windows:
            request = queue_case()
            try:
                _schedule(db, request, scheduler, start=start, end=end)
            except SlotConflictError:
                pass

        entries = db.query(ScheduledEntry).order_by(ScheduledEntry.start_time).all()
        assert [(e.start_time, e.end_time) for e in entries] == [
            ("09:00", "10:00"), ("10:00", "11:00"), ("11:00", "12:00"),
        ]

    def test_second_allocation_of_same_request(self, db, scheduled_case, scheduler):
        """Test re-submitting an allocated request fails without a second entry."""
        case, entry = scheduled_case

        with pytest.raises(AlreadyScheduledError):
            scheduler_service.schedule_case(
                db, entry.schedule_request_id,
                hearing_date="2025-03-11", start_time="14:00", end_time="15:00",
                scheduler=scheduler,
            )

        assert db.query(ScheduledEntry).filter(ScheduledEntry.case_id == case.id).count() == 1

    def test_unknown_request(self, db, scheduler):
        with pytest.raises(ScheduleRequestNotFoundError):
            scheduler_service.schedule_case(
                db, uuid.uuid4(), hearing_date="2025-03-10",
                start_time="09:00", end_time="10:00", scheduler=scheduler,
            )

    @pytest.mark.parametrize(
        "hearing_date,start,end",
        [(None, "09:00", "10:00"), ("2025-03-10", None, "10:00"), ("2025-03-10", "10:00", "09:00")],
    )
    def test_invalid_input(self, db, queue_case, scheduler, hearing_date, start, end):
        request = queue_case()

        with pytest.raises(SchedulingValidationError):
            _schedule(db, request, scheduler, hearing_date=hearing_date, start=start, end=end)

    def test_event_emitted_after_commit(self, db, queue_case, scheduler):
        received = []
        notification_publisher.subscribe(received.append)
        request = queue_case()

        _schedule(db, request, scheduler)

        assert len(received) == 1
        assert isinstance(received[0], ScheduleAllocated)
        assert received[0].hearing_date == date(2025, 3, 10)


@pytest.mark.integration
class TestAllocationFailures:
    """Test rollback and error mapping."""

    def test_unique_index_violation_maps_to_conflict(self, db, scheduled_case, queue_case, scheduler, monkeypatch):
        """Test the database backstop reports SlotConflict when the pre-check misses."""
        monkeypatch.setattr(scheduler_module, "find_conflict", lambda *a, **kw: None)
        second = queue_case()

        with pytest.raises(SlotConflictError):
            _schedule(db, second, scheduler)

        db.refresh(second)
        assert second.is_scheduled is False
        assert db.query(ScheduledEntry).count() == 1

    def test_storage_failure_rolls_back_everything(self, db, queue_case, scheduler, monkeypatch):
        """Test a failing write leaves no entry and an untouched request and case."""
        def failing_update(*args, **kwargs):
            raise OperationalError("UPDATE court_filings", {}, Exception("disk I/O error"))

        monkeypatch.setattr(scheduler_module, "update_filing_status", failing_update)
        request = queue_case()

        with pytest.raises(PersistenceFailureError) as exc:
            _schedule(db, request, scheduler)

        assert exc.value.status_code == 503
        assert "disk" not in exc.value.detail
        assert db.query(ScheduledEntry).count() == 0
        db.refresh(request)
        assert request.is_scheduled is False
        case = db.query(Case).filter(Case.id == request.case_id).one()
        assert case.status == CaseStatus.scheduling_requested
        assert case.hearing_date is None

    def test_case_without_lawyer_cannot_be_scheduled(self, db, queue_case, scheduler):
        request = queue_case()
        case = db.query(Case).filter(Case.id == request.case_id).one()
        case.current_lawyer_id = None
        db.commit()

        with pytest.raises(InvalidStateError):
            _schedule(db, request, scheduler)

        assert db.query(ScheduledEntry).count() == 0
