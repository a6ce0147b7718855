"""
services/slot_catalog.py

The fixed set of bookable hearing windows per court day and the
free/occupied breakdown for a district on a date.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from court_scheduling.services.conflict_checker import active_entries, effective_courtroom, windows_collide


@dataclass(frozen=True)
class TimeSlot:
    start_time: str
    end_time: str


# 9am-5pm in 1-hour slots, lunch break 12:00-14:00
_STANDARD_SLOTS = (
    TimeSlot("09:00", "10:00"),
    TimeSlot("10:00", "11:00"),
    TimeSlot("11:00", "12:00"),
    TimeSlot("14:00", "15:00"),
    TimeSlot("15:00", "16:00"),
    TimeSlot("16:00", "17:00"),
)


@dataclass
class OccupiedSlot:
    start_time: str
    end_time: str
    courtroom: str
    case_number: Optional[str] = None


@dataclass
class SlotAvailability:
    district: str
    date: date
    courtroom: Optional[str]
    available_slots: list[TimeSlot] = field(default_factory=list)
    occupied_slots: list[OccupiedSlot] = field(default_factory=list)

    @property
    def total_slots(self) -> int:
        return len(_STANDARD_SLOTS)

    @property
    def available_count(self) -> int:
        return len(self.available_slots)


def standard_slots() -> list[TimeSlot]:
    return list(_STANDARD_SLOTS)


def available_slots(
    db:           Session,
    district:     str,
    hearing_date: date,
    courtroom:    Optional[str] = None,
) -> SlotAvailability:
    """
    Standard slots minus those taken by an active entry.

    Without a courtroom every active entry in the district blocks its slot,
    which is what the scheduler screen shows before a room is chosen. The
    same happens for a named room when conflicts are scoped district-wide,
    so a slot offered here is one schedule_case will accept.
    """
    entries = active_entries(db, district, hearing_date, effective_courtroom(courtroom))
    occupied = [
        OccupiedSlot(
            start_time=e.start_time,
            end_time=e.end_time,
            courtroom=e.courtroom,
            case_number=e.case_number,
        )
        for e in entries
    ]

    free = [
        slot for slot in _STANDARD_SLOTS
        if not any(
            windows_collide(o.start_time, o.end_time, slot.start_time, slot.end_time)
            for o in occupied
        )
    ]

    return SlotAvailability(
        district=district,
        date=hearing_date,
        courtroom=courtroom,
        available_slots=free,
        occupied_slots=occupied,
    )
