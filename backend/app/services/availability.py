from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.exceptions import SubjectNotFoundError
from app.models.faculty import Faculty
from app.models.subject import Subject
from app.models.timetable import TimetableEntry
from app.models.user import User
from app.schemas.availability import (
    AssignedFaculty,
    AvailabilityReport,
    AvailabilityStatistics,
    FacultyCandidate,
    Recommendation,
    SubjectSummary,
)
from app.services.workload import experience_level, workload_status

logger = logging.getLogger(__name__)

SAME_DEPARTMENT_BONUS = 10
EXPERIENCE_CAP = 10
LOAD_HEADROOM = 10
SPECIALIZATION_BONUS = 5
MIN_KEYWORD_LENGTH = 4
RECOMMENDATION_LIMIT = 3


def specialization_bonus(subject_name: str, specialization: str | None) -> int:
    if not specialization or not subject_name:
        return 0
    subject_words = list(dict.fromkeys(subject_name.lower().split()))
    specialization_words = specialization.lower().split()
    bonus = 0
    for word in subject_words:
        if len(word) < MIN_KEYWORD_LENGTH:
            continue
        for expertise in specialization_words:
            if word in expertise or expertise in word:
                bonus += SPECIALIZATION_BONUS
                break
    return bonus


def compatibility_score(
    *,
    same_department: bool,
    experience_years: int | None,
    current_assignments: int,
    subject_name: str,
    specialization: str | None,
) -> int:
    score = SAME_DEPARTMENT_BONUS if same_department else 0
    score += min(experience_years or 0, EXPERIENCE_CAP)
    score += max(0, LOAD_HEADROOM - current_assignments)
    score += specialization_bonus(subject_name, specialization)
    return score


def candidate_sort_key(candidate: FacultyCandidate):
    return (
        -candidate.compatibility_score,
        candidate.department_priority,
        candidate.current_assignments,
        candidate.full_name.lower(),
        candidate.faculty_id,
    )


def recommendation_reasons(candidate: FacultyCandidate) -> list[str]:
    reasons: list[str] = []
    if candidate.department_match:
        reasons.append(f"Same department ({candidate.department})")
    if candidate.experience_years is not None and candidate.experience_years >= 5:
        reasons.append(f"Experienced ({candidate.experience_years} years)")
    if candidate.workload_status == "light":
        reasons.append(f"Light teaching load ({candidate.current_assignments} subjects)")
    if candidate.specialization:
        reasons.append("Relevant specialization")
    return reasons


def rank_candidates(candidates: list[FacultyCandidate]) -> list[FacultyCandidate]:
    return sorted(candidates, key=candidate_sort_key)


def build_recommendations(ranked: list[FacultyCandidate]) -> list[Recommendation]:
    return [
        Recommendation(
            faculty_id=candidate.faculty_id,
            name=candidate.full_name,
            score=candidate.compatibility_score,
            reasons=recommendation_reasons(candidate),
        )
        for candidate in ranked[:RECOMMENDATION_LIMIT]
    ]


def summarize(ranked: list[FacultyCandidate]) -> AvailabilityStatistics:
    total = len(ranked)
    same = sum(1 for candidate in ranked if candidate.department_match)
    average = sum(candidate.current_assignments for candidate in ranked) / total if total else 0.0
    return AvailabilityStatistics(
        total_available=total,
        same_department=same,
        different_department=total - same,
        average_assignments=round(average, 1),
    )


def _assignment_counts(db: Session) -> dict[int, tuple[int, int]]:
    rows = db.execute(
        select(
            TimetableEntry.faculty_id,
            func.count(func.distinct(TimetableEntry.subject_id)),
            func.count(TimetableEntry.id),
        )
        .where(TimetableEntry.is_active.is_(True))
        .group_by(TimetableEntry.faculty_id)
    ).all()
    return {faculty_id: (int(subjects), int(entries)) for faculty_id, subjects, entries in rows}


def resolve_available_faculty(db: Session, subject_id: int) -> AvailabilityReport:
    subject = db.get(Subject, subject_id)
    if subject is None or not subject.is_active:
        raise SubjectNotFoundError(subject_id)

    assigned_rows = db.execute(
        select(Faculty, func.min(TimetableEntry.created_at))
        .join(TimetableEntry, TimetableEntry.faculty_id == Faculty.id)
        .where(TimetableEntry.subject_id == subject_id, TimetableEntry.is_active.is_(True))
        .group_by(Faculty.id)
        .order_by(func.min(TimetableEntry.created_at).desc(), Faculty.id.asc())
    ).all()
    assigned_ids = {faculty.id for faculty, _ in assigned_rows}

    counts = _assignment_counts(db)
    faculty_rows = db.execute(
        select(Faculty, User.email)
        .join(User, User.id == Faculty.user_id)
        .where(User.is_active.is_(True))
    ).all()

    candidates: list[FacultyCandidate] = []
    for faculty, email in faculty_rows:
        if faculty.id in assigned_ids:
            continue
        current_assignments, teaching_load = counts.get(faculty.id, (0, 0))
        same_department = faculty.department == subject.department
        candidates.append(
            FacultyCandidate(
                faculty_id=faculty.id,
                employee_id=faculty.employee_id,
                first_name=faculty.first_name,
                last_name=faculty.last_name,
                full_name=faculty.full_name,
                department=faculty.department,
                designation=faculty.designation,
                specialization=faculty.specialization,
                experience_years=faculty.experience_years,
                email=email,
                department_priority=1 if same_department else 2,
                current_assignments=current_assignments,
                teaching_load=teaching_load,
                compatibility_score=compatibility_score(
                    same_department=same_department,
                    experience_years=faculty.experience_years,
                    current_assignments=current_assignments,
                    subject_name=subject.name,
                    specialization=faculty.specialization,
                ),
                department_match=same_department,
                workload_status=workload_status(current_assignments),
                experience_level=experience_level(faculty.experience_years),
            )
        )

    ranked = rank_candidates(candidates)
    logger.info("Resolved available faculty | subject_id=%s | candidates=%s", subject_id, len(ranked))
    return AvailabilityReport(
        faculty=ranked,
        subject=SubjectSummary.model_validate(subject),
        statistics=summarize(ranked),
        currently_assigned=[
            AssignedFaculty(
                faculty_id=faculty.id,
                full_name=faculty.full_name,
                department=faculty.department,
                designation=faculty.designation,
                assigned_since=assigned_since,
            )
            for faculty, assigned_since in assigned_rows
        ],
        recommendations=build_recommendations(ranked),
    )
