from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.calendar import validate_academic_year
from app.schemas.schedule import ScheduleRow


def _normalize_section(value: str) -> str:
    section = value.strip().upper()
    if not section:
        raise ValueError("Section cannot be empty")
    return section


class TimetableEntryCreate(BaseModel):
    subject_id: int = Field(gt=0)
    faculty_id: int = Field(gt=0)
    classroom_id: int = Field(gt=0)
    slot_id: int = Field(gt=0)
    section: str = Field(default="A", min_length=1, max_length=20)
    academic_year: str
    semester: int = Field(ge=1, le=3)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("section")
    @classmethod
    def normalize_section(cls, value: str) -> str:
        return _normalize_section(value)

    @field_validator("academic_year")
    @classmethod
    def check_academic_year(cls, value: str) -> str:
        return validate_academic_year(value)


class TimetableEntryUpdate(BaseModel):
    subject_id: int | None = Field(default=None, gt=0)
    faculty_id: int | None = Field(default=None, gt=0)
    classroom_id: int | None = Field(default=None, gt=0)
    slot_id: int | None = Field(default=None, gt=0)
    section: str | None = Field(default=None, min_length=1, max_length=20)
    academic_year: str | None = None
    semester: int | None = Field(default=None, ge=1, le=3)
    notes: str | None = Field(default=None, max_length=2000)

    @field_validator("section")
    @classmethod
    def normalize_optional_section(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_section(value)

    @field_validator("academic_year")
    @classmethod
    def check_optional_academic_year(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_academic_year(value)


class TimetableWriteResult(BaseModel):
    timetable_id: int
    message: str
    warnings: list[str] = Field(default_factory=list)


class TimetableDetail(ScheduleRow):
    faculty_department: str
    created_by: int | None = None
    created_by_username: str | None = None
    modified_at: datetime | None = None


class RosterEntry(BaseModel):
    student_id: int
    student_number: str
    name: str
    email: str
    department: str | None = None
    enrollment_date: date


class RosterOut(BaseModel):
    timetable_id: int
    enrolled_count: int
    students: list[RosterEntry]
