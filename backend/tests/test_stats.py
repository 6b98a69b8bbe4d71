from datetime import time

from app.schemas.schedule import ScheduleRow
from app.services.schedule import CallerContext, ScheduleQuery
from app.services.stats import aggregate_stats, schedule_stats


def row(timetable_id, subject_id, start, end, **overrides):
    values = {
        "timetable_id": timetable_id,
        "subject_id": subject_id,
        "subject_code": f"S{subject_id}",
        "subject_name": f"Subject {subject_id}",
        "credits": 3,
        "department": "Computer Science",
        "faculty_id": 1,
        "faculty_name": "Ada Lovelace",
        "classroom_id": 1,
        "room_number": "101",
        "building": "Main",
        "capacity": 40,
        "slot_id": timetable_id,
        "slot_name": "slot",
        "day_of_week": "Monday",
        "start_time": start,
        "end_time": end,
        "section": "A",
        "semester": 1,
        "academic_year": "2025-2026",
    }
    values.update(overrides)
    return ScheduleRow(**values)


ROWS = [
    row(1, 1, time(9, 0), time(10, 30), credits=4),
    row(2, 1, time(11, 0), time(12, 0), credits=4, classroom_id=2),
    row(3, 2, time(13, 0), time(13, 45), faculty_id=2),
]


def test_student_stats_sum_credits_per_distinct_subject():
    stats = aggregate_stats(ROWS, "student")

    assert stats.total_subjects == 2
    assert stats.total_classes == 3
    assert stats.total_hours == 3.25
    assert stats.distinct_classrooms == 2
    assert stats.distinct_faculty == 2
    assert stats.total_credits == 7
    assert stats.total_students is None


def test_faculty_stats_report_students_not_credits():
    stats = aggregate_stats(ROWS, "faculty", total_students=12)

    assert stats.total_students == 12
    assert stats.total_credits is None
    assert stats.distinct_faculty is None


def test_empty_schedule_has_zero_totals():
    stats = aggregate_stats([], "admin")

    assert stats.total_classes == 0
    assert stats.total_hours == 0
    assert stats.total_students == 0
    assert stats.distinct_faculty == 0


def test_schedule_stats_counts_students_across_entries(db, seed):
    subject = seed.subject("CS101", "Programming")
    faculty = seed.faculty()
    room = seed.classroom()
    seed.entry(subject, faculty, room, seed.slot("Monday", "09:00", "10:00"))
    seed.entry(subject, faculty, room, seed.slot("Tuesday", "09:00", "11:00"))
    for name in ("Alice", "Bob"):
        seed.enroll(seed.student(name, "Learner"), subject)

    caller = CallerContext(user_id=faculty.user_id, role="faculty", profile_id=faculty.id)
    stats = schedule_stats(db, caller, ScheduleQuery(academic_year="2025-2026", semester=1))

    assert stats.total_classes == 2
    assert stats.total_hours == 3.0
    assert stats.total_students == 2
