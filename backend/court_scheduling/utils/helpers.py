"""
Utility helper functions
"""
import re
import zlib
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

_CASE_NUMBER_RE = re.compile(r'^CL\d{4}-(\d+)$')


def to_minutes(hhmm: str) -> int:
    """'09:30' -> 570"""
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def windows_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open [start, end) overlap on HH:MM strings."""
    return to_minutes(start_a) < to_minutes(end_b) and to_minutes(start_b) < to_minutes(end_a)


def partition_key(district: str, courtroom: Optional[str], hearing_date: date) -> str:
    """Lock/conflict partition: (district, courtroom, date). courtroom=None means district-wide."""
    return f"{district}|{courtroom or '*'}|{hearing_date.isoformat()}"


def stable_lock_id(key: str) -> int:
    """Deterministic signed 64-bit id for pg_advisory_xact_lock."""
    high = zlib.crc32(key.encode("utf-8"))
    low = zlib.adler32(key.encode("utf-8"))
    value = (high << 32) | low
    if value >= 2 ** 63:
        value -= 2 ** 64
    return value


def next_case_number(db: Session, year: Optional[int] = None) -> str:
    """
    Generate the next CL{year}-{NNNN} case number.
    Scans existing numbers for the year and takes max + 1.
    """
    from court_scheduling.db.models import Case

    year = year or datetime.utcnow().year
    prefix = f"CL{year}-"
    numbers = db.query(Case.case_number).filter(Case.case_number.like(f"{prefix}%")).all()

    highest = 0
    for (number,) in numbers:
        match = _CASE_NUMBER_RE.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))

    return f"{prefix}{highest + 1:04d}"
