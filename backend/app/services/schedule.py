from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidRoleError, ProfileNotFoundError, ValidationError
from app.models.faculty import Faculty
from app.models.student import Student
from app.models.timetable import TimetableEntry
from app.models.user import User, UserRole
from app.schemas.calendar import DAY_ORDER, DAY_VALUES, ORDERED_DAYS, WORKING_DAYS, normalize_day
from app.schemas.schedule import ScheduleRow, SearchType
from app.services.enrollments import is_enrolled
from app.services.timetable_store import TimetableFilters, list_active

MIN_SEARCH_LENGTH = 2


@dataclass(frozen=True)
class CallerContext:
    user_id: int
    role: str
    profile_id: int | None = None


@dataclass(frozen=True)
class ScheduleQuery:
    academic_year: str
    semester: int
    week: date | None = None
    view: str = "week"
    department: str | None = None
    faculty_id: int | None = None
    subject_id: int | None = None


def week_start(value: date | None = None) -> date:
    current = value or date.today()
    return current - timedelta(days=current.weekday())


def _role_value(role) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


def resolve_caller(db: Session, user: User) -> CallerContext:
    role = _role_value(user.role)
    if role == UserRole.admin.value:
        return CallerContext(user_id=user.id, role=role)
    if role == UserRole.faculty.value:
        profile_id = db.execute(select(Faculty.id).where(Faculty.user_id == user.id)).scalar_one_or_none()
    elif role == UserRole.student.value:
        profile_id = db.execute(select(Student.id).where(Student.user_id == user.id)).scalar_one_or_none()
    else:
        raise InvalidRoleError(role)
    if profile_id is None:
        raise ProfileNotFoundError(role)
    return CallerContext(user_id=user.id, role=role, profile_id=profile_id)


def scope_filters(caller: CallerContext, query: ScheduleQuery) -> TimetableFilters:
    """Translate the caller's role into store predicates.

    Students see entries matching their enrolled subject/section/period,
    faculty see their own entries, and admins see everything narrowed only by
    the optional department, faculty and subject filters.
    """
    period = {"academic_year": query.academic_year, "semester": query.semester}
    if caller.role == UserRole.admin.value:
        return TimetableFilters(
            department=query.department or None,
            faculty_id=query.faculty_id,
            subject_id=query.subject_id,
            **period,
        )
    if caller.role not in {UserRole.faculty.value, UserRole.student.value}:
        raise InvalidRoleError(caller.role)
    if caller.profile_id is None:
        raise ProfileNotFoundError(caller.role)
    if caller.role == UserRole.faculty.value:
        return TimetableFilters(faculty_id=caller.profile_id, **period)
    return TimetableFilters(student_id=caller.profile_id, **period)


def schedule_sort_key(row: ScheduleRow):
    # Unrecognised day names sort after Sunday, grouped by name.
    return (DAY_ORDER.get(row.day_of_week, len(DAY_ORDER)), row.day_of_week, row.start_time, row.timetable_id)


def sort_schedule_rows(rows: list[ScheduleRow]) -> list[ScheduleRow]:
    return sorted(rows, key=schedule_sort_key)


def assemble_schedule(db: Session, caller: CallerContext, query: ScheduleQuery) -> list[ScheduleRow]:
    return sort_schedule_rows(list_active(db, scope_filters(caller, query)))


def weekly_grid(rows: list[ScheduleRow]) -> tuple[dict[str, list[ScheduleRow]], list[str]]:
    days = list(WORKING_DAYS)
    if any(row.day_of_week == "Sunday" for row in rows):
        days.append("Sunday")
    grid: dict[str, list[ScheduleRow]] = {day: [] for day in days}
    for row in sort_schedule_rows(rows):
        if row.day_of_week not in grid:
            grid[row.day_of_week] = []
            days.append(row.day_of_week)
        grid[row.day_of_week].append(row)
    return grid, days


def parse_day(value: str | None) -> str:
    if value is None or not value.strip():
        return ORDERED_DAYS[date.today().weekday()]
    day = normalize_day(value)
    if day not in DAY_VALUES:
        raise ValidationError(f"Invalid day: {value}", details={"day": value})
    return day


def daily_list(rows: list[ScheduleRow], day: str) -> list[ScheduleRow]:
    return sort_schedule_rows([row for row in rows if row.day_of_week == day])


def _search_haystacks(row: ScheduleRow, search_type: SearchType) -> list[str]:
    if search_type == "subject":
        return [row.subject_code, row.subject_name]
    if search_type == "faculty":
        return [row.faculty_name]
    if search_type == "classroom":
        return [row.room_number, row.building]
    return [row.subject_code, row.subject_name, row.faculty_name, row.room_number, row.building]


def search_rows(rows: list[ScheduleRow], query: str, search_type: SearchType = "all") -> list[ScheduleRow]:
    needle = (query or "").strip().lower()
    if len(needle) < MIN_SEARCH_LENGTH:
        raise ValidationError(
            f"Search query must be at least {MIN_SEARCH_LENGTH} characters long",
            details={"q": query},
        )
    matches = [
        row
        for row in rows
        if any(needle in (value or "").lower() for value in _search_haystacks(row, search_type))
    ]
    return sort_schedule_rows(matches)


def can_view_entry(db: Session, caller: CallerContext, entry: TimetableEntry) -> bool:
    if caller.role == UserRole.admin.value:
        return True
    if caller.role == UserRole.faculty.value:
        return entry.faculty_id == caller.profile_id
    if caller.role == UserRole.student.value:
        return entry.is_active and is_enrolled(db, caller.profile_id, entry)
    return False
