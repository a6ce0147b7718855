"""
Custom validators
"""
import re
from datetime import date, datetime
from typing import Optional, Union

from court_scheduling.utils.exceptions import SchedulingValidationError

DISTRICTS = (
    "Colombo", "Gampaha", "Kalutara", "Kandy", "Matale", "Nuwara Eliya",
    "Galle", "Matara", "Hambantota", "Jaffna", "Kilinochchi", "Mannar",
    "Vavuniya", "Mullaitivu", "Batticaloa", "Ampara", "Trincomalee",
    "Kurunegala", "Puttalam", "Anuradhapura", "Polonnaruwa", "Badulla",
    "Monaragala", "Ratnapura", "Kegalle",
)

_TIME_RE = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')


def validate_district(district: str) -> str:
    """Return the canonical district name or raise."""
    if not district:
        raise SchedulingValidationError("District is required")
    for known in DISTRICTS:
        if known.lower() == district.strip().lower():
            return known
    raise SchedulingValidationError(f"Unknown district: {district}")


def is_all_districts(district: Optional[str]) -> bool:
    """'all' or empty means no district filter"""
    return not district or district.strip().lower() == "all"


def validate_time(value: Optional[str], field: str = "time") -> str:
    """
    Validate a 24h "HH:MM" string.
    Accepts "9:00" and normalises it to "09:00".
    """
    if value is None or not str(value).strip():
        raise SchedulingValidationError(f"{field} is required")
    value = str(value).strip()
    if re.match(r'^\d:\d{2}$', value):
        value = f"0{value}"
    if not _TIME_RE.match(value):
        raise SchedulingValidationError(f"{field} must be in HH:MM format")
    return value


def validate_time_window(start_time: Optional[str], end_time: Optional[str]) -> tuple[str, str]:
    start = validate_time(start_time, "Start time")
    end = validate_time(end_time, "End time")
    if start >= end:
        raise SchedulingValidationError("Start time must be before end time")
    return start, end


def validate_hearing_date(value: Union[date, datetime, str, None], field: str = "Hearing date") -> date:
    if value is None or value == "":
        raise SchedulingValidationError(f"{field} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise SchedulingValidationError(f"{field} must be an ISO date (YYYY-MM-DD)")

