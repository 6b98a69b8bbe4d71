from __future__ import annotations

import re
from datetime import time

ORDERED_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
WORKING_DAYS = ORDERED_DAYS[:6]
DAY_VALUES = set(ORDERED_DAYS)
DAY_ORDER = {day: index for index, day in enumerate(ORDERED_DAYS)}

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

ACADEMIC_YEAR_PATTERN = re.compile(r"^(\d{4})-(\d{2}|\d{4})$")


def normalize_day(value: str) -> str:
    stripped = value.strip().title()
    return DAY_SHORT_MAP.get(stripped, stripped)


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def duration_hours(start: time, end: time) -> float:
    return max(0, time_to_minutes(end) - time_to_minutes(start)) / 60.0


def slots_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    return start_a < end_b and start_b < end_a


def _split_academic_year(value: str) -> tuple[int, int] | None:
    match = ACADEMIC_YEAR_PATTERN.match(value.strip())
    if match is None:
        return None
    start = int(match.group(1))
    tail = match.group(2)
    if len(tail) == 4:
        return start, int(tail)
    end = (start // 100) * 100 + int(tail)
    if end < start:
        end += 100
    return start, end


def canonical_academic_year(value: str) -> str:
    """Expand `2025-26` to `2025-2026`; unrecognised values pass through trimmed."""
    parts = _split_academic_year(value)
    if parts is None:
        return value.strip()
    return f"{parts[0]}-{parts[1]}"


def academic_year_aliases(value: str) -> list[str]:
    parts = _split_academic_year(value)
    if parts is None:
        return [value.strip()]
    start, end = parts
    aliases = [f"{start}-{end}", f"{start}-{end % 100:02d}", value.strip()]
    return list(dict.fromkeys(aliases))


def validate_academic_year(value: str) -> str:
    parts = _split_academic_year(value)
    if parts is None:
        raise ValueError("Academic year must be in YYYY-YYYY format (e.g., 2025-2026)")
    start, end = parts
    if end != start + 1:
        raise ValueError("Academic year end year must be exactly one year after start year")
    return f"{start}-{end}"
