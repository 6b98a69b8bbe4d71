from datetime import date, time

from pydantic import BaseModel, field_validator

from app.schemas.calendar import normalize_day


class TimeSlotOut(BaseModel):
    id: int
    slot_name: str
    day_of_week: str
    start_time: time
    end_time: time
    slot_type: str
    is_active: bool

    model_config = {"from_attributes": True}

    @field_validator("day_of_week")
    @classmethod
    def canonical_day(cls, value: str) -> str:
        return normalize_day(value)


class OverlappingSlot(BaseModel):
    slot_id: int
    slot_name: str
    day_of_week: str
    start_time: time
    end_time: time
    usage_count: int

    @field_validator("day_of_week")
    @classmethod
    def canonical_day(cls, value: str) -> str:
        return normalize_day(value)


class ScheduledClass(BaseModel):
    timetable_id: int
    section: str
    semester: int
    academic_year: str
    is_active: bool
    subject_code: str
    subject_name: str
    faculty_name: str
    room_number: str
    building: str
    enrolled_students: int


class TimeSlotDetails(TimeSlotOut):
    duration_minutes: int
    usage_count: int
    active_usage_count: int
    subjects_count: int
    faculty_count: int
    classrooms_count: int
    subject_codes: list[str]
    faculty_names: list[str]
    room_numbers: list[str]
    scheduled_classes: list[ScheduledClass]
    potential_conflicts: list[OverlappingSlot]


class AvailableSlotsOut(BaseModel):
    available_slots: list[TimeSlotOut]
    occupied_slots: list[int]
    date: date
    day_of_week: str
