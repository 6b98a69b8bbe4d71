"""Headcounts and rosters for timetable entries.

Every count here is either a correlated ``COUNT`` subquery or an
``EXISTS`` predicate.  A class is never joined to enrollments alongside
other one-to-many tables, so a student is counted once per entry no matter
how the surrounding query is shaped.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import String, and_, exists, func, or_, select
from sqlalchemy.orm import Session

from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.student import Student
from app.models.timetable import TimetableEntry
from app.models.user import User
from app.schemas.calendar import academic_year_aliases
from app.schemas.timetable import RosterEntry


def short_academic_year(column):
    """`2025-2026` -> `2025-26` in SQL; other shapes yield a value no year matches."""
    return func.substr(column, 1, 5, type_=String).concat(func.substr(column, 8, 2, type_=String))


def same_academic_year(left, right):
    return or_(
        left == right,
        short_academic_year(left) == right,
        left == short_academic_year(right),
    )


def enrollment_matches_entry():
    return and_(
        Enrollment.subject_id == TimetableEntry.subject_id,
        Enrollment.section == TimetableEntry.section,
        Enrollment.semester == TimetableEntry.semester,
        same_academic_year(Enrollment.academic_year, TimetableEntry.academic_year),
        Enrollment.status == EnrollmentStatus.enrolled,
    )


def enrolled_count_column():
    return (
        select(func.count(Enrollment.id))
        .where(enrollment_matches_entry())
        .correlate(TimetableEntry)
        .scalar_subquery()
    )


def count_enrolled(
    db: Session,
    *,
    subject_id: int,
    section: str,
    semester: int,
    academic_year: str,
) -> int:
    return int(
        db.execute(
            select(func.count(Enrollment.id)).where(
                Enrollment.subject_id == subject_id,
                Enrollment.section == section,
                Enrollment.semester == semester,
                Enrollment.academic_year.in_(academic_year_aliases(academic_year)),
                Enrollment.status == EnrollmentStatus.enrolled,
            )
        ).scalar_one()
    )


def distinct_student_count(db: Session, entry_ids: Iterable[int]) -> int:
    ids = sorted(set(entry_ids))
    if not ids:
        return 0
    reachable = exists().where(
        Enrollment.student_id == Student.id,
        TimetableEntry.id.in_(ids),
        enrollment_matches_entry(),
    )
    return int(db.execute(select(func.count(Student.id)).where(reachable)).scalar_one())


def roster(db: Session, entry: TimetableEntry) -> list[RosterEntry]:
    rows = db.execute(
        select(Student, User.email, Enrollment.enrollment_date)
        .join(Enrollment, Enrollment.student_id == Student.id)
        .join(User, User.id == Student.user_id)
        .where(
            Enrollment.subject_id == entry.subject_id,
            Enrollment.section == entry.section,
            Enrollment.semester == entry.semester,
            Enrollment.academic_year.in_(academic_year_aliases(entry.academic_year)),
            Enrollment.status == EnrollmentStatus.enrolled,
        )
        .order_by(Student.last_name.asc(), Student.first_name.asc(), Student.id.asc())
    ).all()

    students: list[RosterEntry] = []
    seen: set[int] = set()
    for student, email, enrollment_date in rows:
        if student.id in seen:
            continue
        seen.add(student.id)
        students.append(
            RosterEntry(
                student_id=student.id,
                student_number=student.student_number,
                name=student.full_name,
                email=email,
                department=student.department,
                enrollment_date=enrollment_date,
            )
        )
    return students


def is_enrolled(db: Session, student_id: int, entry: TimetableEntry) -> bool:
    return bool(
        db.execute(
            select(
                exists().where(
                    Enrollment.student_id == student_id,
                    Enrollment.subject_id == entry.subject_id,
                    Enrollment.section == entry.section,
                    Enrollment.semester == entry.semester,
                    Enrollment.academic_year.in_(academic_year_aliases(entry.academic_year)),
                    Enrollment.status == EnrollmentStatus.enrolled,
                )
            )
        ).scalar()
    )
