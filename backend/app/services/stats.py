from __future__ import annotations

from sqlalchemy.orm import Session

from app.models.user import UserRole
from app.schemas.calendar import duration_hours
from app.schemas.schedule import ScheduleRow, ScheduleStats
from app.services.enrollments import distinct_student_count
from app.services.schedule import CallerContext, ScheduleQuery, assemble_schedule


def aggregate_stats(rows: list[ScheduleRow], role: str, total_students: int | None = None) -> ScheduleStats:
    """Summarise an assembled schedule for one role.

    Hours come from each row's actual start/end difference. Credits are summed
    once per distinct subject, so a subject taught in several slots counts once.
    """
    credits_by_subject = {row.subject_id: row.credits for row in rows}
    stats = ScheduleStats(
        user_role=role,
        total_subjects=len(credits_by_subject),
        total_classes=len(rows),
        total_hours=round(sum(duration_hours(row.start_time, row.end_time) for row in rows), 2),
        distinct_classrooms=len({row.classroom_id for row in rows}),
    )
    if role in {UserRole.student.value, UserRole.admin.value}:
        stats.distinct_faculty = len({row.faculty_id for row in rows})
    if role in {UserRole.faculty.value, UserRole.admin.value}:
        stats.total_students = total_students or 0
    if role == UserRole.student.value:
        stats.total_credits = sum(credits_by_subject.values())
    return stats


def schedule_stats(db: Session, caller: CallerContext, query: ScheduleQuery) -> ScheduleStats:
    rows = assemble_schedule(db, caller, query)
    total_students = None
    if caller.role != UserRole.student.value:
        total_students = distinct_student_count(db, [row.timetable_id for row in rows])
    return aggregate_stats(rows, caller.role, total_students)
