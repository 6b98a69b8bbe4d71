from datetime import time
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.schemas.calendar import validate_academic_year

ConflictType = Literal["classroom", "faculty", "section"]


class ConflictRecord(BaseModel):
    id: str
    entry_a: int
    entry_b: int
    conflict_type: ConflictType
    slot_id: int
    day: str
    start_time: time
    end_time: time
    time_range: str
    academic_year: str
    semester: int
    subject_a: str
    subject_b: str
    resource: str
    description: str


class ConflictReport(BaseModel):
    conflicts: list[ConflictRecord]
    section_duplicates: list[ConflictRecord] = Field(default_factory=list)
    count: int


class BookingClash(BaseModel):
    timetable_id: int
    conflict_type: Literal["classroom", "faculty"]
    subject_code: str
    subject_name: str
    faculty_name: str
    room_number: str
    building: str
    message: str


class ConflictCheckRequest(BaseModel):
    faculty_id: int = Field(gt=0)
    classroom_id: int = Field(gt=0)
    slot_id: int = Field(gt=0)
    semester: int = Field(ge=1, le=3)
    academic_year: str
    exclude_timetable_id: int | None = Field(default=None, gt=0)

    @field_validator("academic_year")
    @classmethod
    def check_academic_year(cls, value: str) -> str:
        return validate_academic_year(value)


class ConflictCheckOut(BaseModel):
    has_conflict: bool
    message: str
    clashes: list[BookingClash]
