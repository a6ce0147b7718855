"""Unit tests for the standard hearing slots and conflict rules.

Tests the fixed slot catalog, the overlap and exact conflict modes, and
courtroom scoping of the conflict key.
"""

import uuid
from datetime import date

import pytest

from court_scheduling.core.config import settings
from court_scheduling.db.models import ScheduledEntry, ScheduledEntryStatus
from court_scheduling.services import conflict_checker
from court_scheduling.services.conflict_checker import find_conflict, has_conflict, windows_collide
from court_scheduling.services.slot_catalog import (
    TimeSlot,
    available_slots,
    standard_slots,
)

HEARING_DAY = date(2025, 3, 10)


def _entry(db, start, end, courtroom="Court-1", status=ScheduledEntryStatus.scheduled, case_number="CL2025-0900"):
    """Insert a bare calendar entry without going through the scheduler."""
    entry = ScheduledEntry(
        schedule_request_id=uuid.uuid4(),
        case_id=uuid.uuid4(),
        sequence_number=1,
        district="Colombo",
        courtroom=courtroom,
        hearing_date=HEARING_DAY,
        start_time=start,
        end_time=end,
        status=status,
        case_number=case_number,
        case_type="civil",
        scheduled_by=uuid.uuid4(),
    )
    db.add(entry)
    db.commit()
    return entry


@pytest.mark.unit
class TestStandardSlots:
    """Test the fixed daily slot catalog."""

    def test_six_one_hour_slots_around_lunch(self):
        """Test the catalog is 9-12 and 14-17 in one-hour slots."""
        slots = standard_slots()

        assert [(s.start_time, s.end_time) for s in slots] == [
            ("09:00", "10:00"),
            ("10:00", "11:00"),
            ("11:00", "12:00"),
            ("14:00", "15:00"),
            ("15:00", "16:00"),
            ("16:00", "17:00"),
        ]

    def test_lunch_break_is_not_a_slot(self):
        """Test nothing is offered between 12:00 and 14:00."""
        starts = {s.start_time for s in standard_slots()}

        assert "12:00" not in starts
        assert "13:00" not in starts

    def test_returned_list_is_a_copy(self):
        """Test callers cannot mutate the catalog."""
        slots = standard_slots()
        slots.clear()

        assert len(standard_slots()) == 6


@pytest.mark.unit
class TestConflictModes:
    """Test overlap vs exact collision rules."""

    def test_overlap_detects_partial_overlap(self):
        """Test 09:30-10:30 collides with 09:00-10:00 in overlap mode."""
        assert windows_collide("09:00", "10:00", "09:30", "10:30", mode="overlap") is True

    def test_adjacent_windows_do_not_overlap(self):
        """Test half-open intervals: back-to-back hearings are allowed."""
        assert windows_collide("09:00", "10:00", "10:00", "11:00", mode="overlap") is False

    def test_exact_mode_ignores_partial_overlap(self):
        """Test the legacy rule only matches identical windows."""
        assert windows_collide("09:00", "10:00", "09:30", "10:30", mode="exact") is False
        assert windows_collide("09:00", "10:00", "09:00", "10:00", mode="exact") is True

    def test_mode_defaults_to_setting(self, monkeypatch):
        """Test the configured mode applies when none is passed."""
        monkeypatch.setattr(settings, "CONFLICT_CHECK_MODE", "exact")
        assert windows_collide("09:00", "10:00", "09:30", "10:30") is False

        monkeypatch.setattr(settings, "CONFLICT_CHECK_MODE", "overlap")
        assert windows_collide("09:00", "10:00", "09:30", "10:30") is True


@pytest.mark.unit
class TestConflictChecker:
    """Test conflict lookups against stored entries."""

    def test_only_active_entries_conflict(self, db):
        """Test adjourned and cancelled bookings free their slot."""
        _entry(db, "09:00", "10:00", status=ScheduledEntryStatus.adjourned)
        _entry(db, "10:00", "11:00", status=ScheduledEntryStatus.cancelled)

        assert has_conflict(db, "Colombo", HEARING_DAY, "09:00", "10:00", courtroom="Court-1") is False
        assert has_conflict(db, "Colombo", HEARING_DAY, "10:00", "11:00", courtroom="Court-1") is False

    def test_in_progress_entry_conflicts(self, db):
        """Test a hearing in progress still holds its slot."""
        _entry(db, "09:00", "10:00", status=ScheduledEntryStatus.in_progress)

        assert has_conflict(db, "Colombo", HEARING_DAY, "09:30", "10:30", courtroom="Court-1") is True

    def test_exclude_entry_id_skips_replaced_entry(self, db):
        """Test the entry being replaced does not conflict with itself."""
        existing = _entry(db, "09:00", "10:00")

        found = find_conflict(
            db, "Colombo", HEARING_DAY, "09:00", "10:00",
            courtroom="Court-1", exclude_entry_id=existing.id,
        )
        assert found is None

    def test_other_courtroom_does_not_conflict(self, db):
        """Test the courtroom is part of the conflict key by default."""
        _entry(db, "09:00", "10:00", courtroom="Court-1")

        assert has_conflict(db, "Colombo", HEARING_DAY, "09:00", "10:00", courtroom="Court-2") is False

    def test_district_wide_scope_when_courtroom_excluded(self, db, monkeypatch):
        """Test disabling courtroom scoping makes the whole district one slot space."""
        monkeypatch.setattr(settings, "CONFLICT_SCOPE_INCLUDES_COURTROOM", False)
        _entry(db, "09:00", "10:00", courtroom="Court-1")

        assert conflict_checker.effective_courtroom("Court-2") is None
        assert has_conflict(db, "Colombo", HEARING_DAY, "09:00", "10:00", courtroom="Court-2") is True

    def test_district_wide_scope_hides_slots_taken_in_other_rooms(self, db, monkeypatch):
        """Test a slot offered as free is one the conflict check accepts."""
        monkeypatch.setattr(settings, "CONFLICT_SCOPE_INCLUDES_COURTROOM", False)
        _entry(db, "09:00", "10:00", courtroom="Court-1")

        result = available_slots(db, "Colombo", HEARING_DAY, courtroom="Court-2")
        free = {(s.start_time, s.end_time) for s in result.available_slots}

        assert ("09:00", "10:00") not in free
        assert result.available_count == 5
        assert result.occupied_slots[0].courtroom == "Court-1"
        for start, end in free:
            assert has_conflict(db, "Colombo", HEARING_DAY, start, end, courtroom="Court-2") is False

    def test_other_district_does_not_conflict(self, db):
        """Test partitions are per district."""
        _entry(db, "09:00", "10:00")

        assert has_conflict(db, "Gampaha", HEARING_DAY, "09:00", "10:00", courtroom="Court-1") is False


@pytest.mark.unit
class TestAvailableSlots:
    """Test the free/occupied breakdown for a day."""

    def test_empty_day_has_all_slots(self, db):
        """Test a day without hearings offers every standard slot."""
        result = available_slots(db, "Colombo", HEARING_DAY)

        assert result.total_slots == 6
        assert result.available_count == 6
        assert result.occupied_slots == []

    def test_occupied_slot_removed(self, db):
        """Test a booked slot is listed as occupied with its case number."""
        _entry(db, "09:00", "10:00", case_number="CL2025-0001")

        result = available_slots(db, "Colombo", HEARING_DAY)

        assert TimeSlot("09:00", "10:00") not in result.available_slots
        assert result.available_count == 5
        assert result.occupied_slots[0].case_number == "CL2025-0001"
        assert result.occupied_slots[0].courtroom == "Court-1"

    def test_off_grid_booking_blocks_both_slots_in_overlap_mode(self, db):
        """Test 09:30-10:30 blocks the 09:00 and 10:00 slots."""
        _entry(db, "09:30", "10:30")

        result = available_slots(db, "Colombo", HEARING_DAY)
        free = {(s.start_time, s.end_time) for s in result.available_slots}

        assert ("09:00", "10:00") not in free
        assert ("10:00", "11:00") not in free
        assert result.available_count == 4

    def test_courtroom_filter(self, db):
        """Test naming a courtroom ignores bookings in other rooms."""
        _entry(db, "09:00", "10:00", courtroom="Court-1")

        assert available_slots(db, "Colombo", HEARING_DAY, courtroom="Court-2").available_count == 6
        assert available_slots(db, "Colombo", HEARING_DAY, courtroom="Court-1").available_count == 5
