from __future__ import annotations

from datetime import date, datetime, time
from typing import Literal

from pydantic import BaseModel, field_validator

from app.models.user import UserRole
from app.schemas.calendar import normalize_day

SearchType = Literal["subject", "faculty", "classroom", "all"]


class ScheduleRow(BaseModel):
    timetable_id: int
    subject_id: int
    subject_code: str
    subject_name: str
    credits: int
    department: str
    faculty_id: int
    faculty_name: str
    designation: str | None = None
    employee_id: str | None = None
    classroom_id: int
    room_number: str
    building: str
    capacity: int
    slot_id: int
    slot_name: str
    day_of_week: str
    start_time: time
    end_time: time
    section: str
    semester: int
    academic_year: str
    notes: str | None = None
    enrolled_count: int = 0
    is_active: bool = True
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("day_of_week")
    @classmethod
    def canonical_day(cls, value: str) -> str:
        # Slot master data may carry `monday` or `Mon`.
        return normalize_day(value)


class ScheduleFiltersOut(BaseModel):
    department: str | None = None
    faculty_id: int | None = None
    subject_id: int | None = None


class ScheduleOut(BaseModel):
    schedule: list[ScheduleRow]
    week: date
    view: str
    academic_year: str
    semester: int
    user_role: UserRole
    filters: ScheduleFiltersOut | None = None


class WeeklyScheduleOut(BaseModel):
    weekly_schedule: dict[str, list[ScheduleRow]]
    days: list[str]
    user_role: UserRole


class DailyScheduleOut(BaseModel):
    daily_schedule: list[ScheduleRow]
    selected_day: str
    user_role: UserRole


class ScheduleStats(BaseModel):
    user_role: UserRole
    total_subjects: int
    total_classes: int
    total_hours: float
    distinct_classrooms: int
    distinct_faculty: int | None = None
    total_students: int | None = None
    total_credits: int | None = None


class ScheduleSearchOut(BaseModel):
    results: list[ScheduleRow]
    query: str
    type: SearchType
    count: int
