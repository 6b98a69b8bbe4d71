from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from app.models.subject import SubjectType

WorkloadStatus = Literal["light", "moderate", "heavy"]
ExperienceLevel = Literal["junior", "mid", "senior", "unknown"]


class SubjectSummary(BaseModel):
    id: int
    code: str
    name: str
    department: str
    year_level: int
    semester: int
    type: SubjectType
    credits: int

    model_config = {"from_attributes": True}


class FacultyCandidate(BaseModel):
    faculty_id: int
    employee_id: str
    first_name: str
    last_name: str
    full_name: str
    department: str
    designation: str
    specialization: str | None = None
    experience_years: int | None = None
    email: str
    department_priority: int
    current_assignments: int
    teaching_load: int
    compatibility_score: int
    department_match: bool
    workload_status: WorkloadStatus
    experience_level: ExperienceLevel


class AssignedFaculty(BaseModel):
    faculty_id: int
    full_name: str
    department: str
    designation: str
    assigned_since: datetime | None = None


class AvailabilityStatistics(BaseModel):
    total_available: int
    same_department: int
    different_department: int
    average_assignments: float


class Recommendation(BaseModel):
    faculty_id: int
    name: str
    score: int
    reasons: list[str]


class AvailabilityReport(BaseModel):
    faculty: list[FacultyCandidate]
    subject: SubjectSummary
    statistics: AvailabilityStatistics
    currently_assigned: list[AssignedFaculty]
    recommendations: list[Recommendation]
