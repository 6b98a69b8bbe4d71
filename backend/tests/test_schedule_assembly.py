from datetime import date, time

import pytest

from app.core.exceptions import InvalidRoleError, ProfileNotFoundError, ValidationError
from app.models.enrollment import EnrollmentStatus
from app.models.subject import Subject
from app.models.user import UserRole
from app.services.schedule import (
    CallerContext,
    ScheduleQuery,
    assemble_schedule,
    daily_list,
    parse_day,
    resolve_caller,
    scope_filters,
    search_rows,
    sort_schedule_rows,
    week_start,
    weekly_grid,
)

QUERY = ScheduleQuery(academic_year="2025-2026", semester=1)


@pytest.fixture
def campus(seed):
    algorithms = seed.subject("CS201", "Algorithms", credits=4)
    databases = seed.subject("CS202", "Database Systems")
    ada = seed.faculty("Ada", "Lovelace")
    alan = seed.faculty("Alan", "Turing")
    lab = seed.classroom("101")
    hall = seed.classroom("B12", building="Annex", capacity=120)
    mon_9 = seed.slot("Monday", "09:00", "10:00")
    mon_11 = seed.slot("Monday", "11:00", "12:30")
    tue_8 = seed.slot("Tuesday", "08:00", "09:00")
    sun_10 = seed.slot("Sunday", "10:00", "11:00")

    entries = {
        "algo_a": seed.entry(algorithms, ada, lab, mon_11, section="A"),
        "algo_b": seed.entry(algorithms, alan, hall, mon_9, section="B"),
        "db_a": seed.entry(databases, ada, hall, tue_8, section="A"),
        "retired": seed.entry(databases, alan, lab, sun_10, section="A", is_active=False),
        "next_year": seed.entry(databases, alan, lab, mon_9, section="A", academic_year="2026-2027"),
    }
    student = seed.student()
    seed.enroll(student, algorithms, section="A")
    return {"ada": ada, "alan": alan, "student": student, "entries": entries}


def test_student_only_sees_enrolled_sections(db, campus):
    caller = CallerContext(user_id=1, role="student", profile_id=campus["student"].id)
    rows = assemble_schedule(db, caller, QUERY)

    assert [row.timetable_id for row in rows] == [campus["entries"]["algo_a"].id]
    assert rows[0].section == "A"


def test_student_row_appears_once_with_duplicate_enrollments(db, seed, campus):
    algorithms = db.get(Subject, campus["entries"]["algo_a"].subject_id)
    # A dropped row for the same section never duplicates the class.
    seed.enroll(campus["student"], algorithms, section="A", status=EnrollmentStatus.dropped)
    caller = CallerContext(user_id=1, role="student", profile_id=campus["student"].id)

    rows = assemble_schedule(db, caller, QUERY)
    assert len(rows) == 1
    assert rows[0].enrolled_count == 1


def test_faculty_sees_only_own_entries(db, campus):
    caller = CallerContext(user_id=1, role="faculty", profile_id=campus["ada"].id)
    rows = assemble_schedule(db, caller, QUERY)

    assert {row.faculty_id for row in rows} == {campus["ada"].id}
    assert [row.timetable_id for row in rows] == [campus["entries"]["algo_a"].id, campus["entries"]["db_a"].id]


def test_admin_sees_all_active_entries_of_the_period_in_order(db, campus):
    caller = CallerContext(user_id=1, role="admin")
    rows = assemble_schedule(db, caller, QUERY)

    entries = campus["entries"]
    assert [row.timetable_id for row in rows] == [entries["algo_b"].id, entries["algo_a"].id, entries["db_a"].id]


def test_admin_filters_narrow_the_schedule(db, campus):
    caller = CallerContext(user_id=1, role="admin")
    query = ScheduleQuery(academic_year="2025-26", semester=1, faculty_id=campus["alan"].id)

    rows = assemble_schedule(db, caller, query)
    assert [row.timetable_id for row in rows] == [campus["entries"]["algo_b"].id]

    by_department = assemble_schedule(db, caller, ScheduleQuery(academic_year="2025-2026", semester=1, department="History"))
    assert by_department == []


def test_non_admin_filters_are_ignored(campus):
    caller = CallerContext(user_id=1, role="faculty", profile_id=campus["ada"].id)
    query = ScheduleQuery(academic_year="2025-2026", semester=1, faculty_id=campus["alan"].id, department="X")

    filters = scope_filters(caller, query)
    assert filters.faculty_id == campus["ada"].id
    assert filters.department is None


def test_assembly_is_idempotent(db, campus):
    caller = CallerContext(user_id=1, role="admin")
    assert assemble_schedule(db, caller, QUERY) == assemble_schedule(db, caller, QUERY)


def test_weekly_grid_matches_flat_order(db, campus):
    rows = assemble_schedule(db, CallerContext(user_id=1, role="admin"), QUERY)
    grid, days = weekly_grid(rows)

    assert days == ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
    assert [row for day in days for row in grid[day]] == rows
    assert [row.start_time for row in grid["Monday"]] == [time(9, 0), time(11, 0)]
    assert grid["Saturday"] == []


def test_weekly_grid_adds_sunday_only_when_used(db, campus):
    rows = assemble_schedule(db, CallerContext(user_id=1, role="admin"), QUERY)
    sunday = rows[0].model_copy(update={"timetable_id": 999, "day_of_week": "Sunday"})

    _, days = weekly_grid(rows + [sunday])
    assert days[-1] == "Sunday"


def test_loosely_spelled_slot_days_stay_in_the_weekly_grid(db, seed):
    subject = seed.subject("CS101", "Programming")
    faculty = seed.faculty()
    room = seed.classroom()
    lowercase = seed.entry(subject, faculty, room, seed.slot("monday", "11:00", "12:00"))
    short = seed.entry(subject, faculty, room, seed.slot("Tue", "08:00", "09:00"))
    canonical = seed.entry(subject, faculty, room, seed.slot("Monday", "09:00", "10:00"))

    rows = assemble_schedule(db, CallerContext(user_id=1, role="admin"), QUERY)
    grid, days = weekly_grid(rows)

    assert [row.timetable_id for row in rows] == [canonical.id, lowercase.id, short.id]
    assert [row.day_of_week for row in rows] == ["Monday", "Monday", "Tuesday"]
    assert [row for day in days for row in grid[day]] == rows
    assert daily_list(rows, "Monday") == rows[:2]


def test_weekly_grid_keeps_unrecognised_days_after_sunday(db, campus):
    rows = assemble_schedule(db, CallerContext(user_id=1, role="admin"), QUERY)
    odd = rows[0].model_copy(update={"timetable_id": 998, "day_of_week": "Holiday"})
    sunday = rows[0].model_copy(update={"timetable_id": 999, "day_of_week": "Sunday"})

    grid, days = weekly_grid(rows + [odd, sunday])

    assert days[-2:] == ["Sunday", "Holiday"]
    assert [row.timetable_id for day in days for row in grid[day]] == [
        row.timetable_id for row in sort_schedule_rows(rows + [odd, sunday])
    ]


def test_daily_list_and_day_parsing(db, campus):
    rows = assemble_schedule(db, CallerContext(user_id=1, role="admin"), QUERY)

    assert [row.day_of_week for row in daily_list(rows, parse_day("mon"))] == ["Monday", "Monday"]
    assert daily_list(rows, parse_day(" friday ")) == []
    with pytest.raises(ValidationError):
        parse_day("Funday")


def test_search_by_type(db, campus):
    rows = assemble_schedule(db, CallerContext(user_id=1, role="admin"), QUERY)

    assert {row.subject_code for row in search_rows(rows, "data", "subject")} == {"CS202"}
    assert {row.faculty_name for row in search_rows(rows, "TURING", "faculty")} == {"Alan Turing"}
    assert {row.room_number for row in search_rows(rows, "annex", "classroom")} == {"B12"}
    assert len(search_rows(rows, "cs2", "all")) == 3
    with pytest.raises(ValidationError):
        search_rows(rows, " a ", "all")


def test_resolve_caller_requires_profile(db, seed):
    orphan = seed.user(UserRole.faculty)
    with pytest.raises(ProfileNotFoundError):
        resolve_caller(db, orphan)

    admin = seed.admin()
    assert resolve_caller(db, admin).profile_id is None


def test_unknown_role_is_rejected():
    with pytest.raises(InvalidRoleError):
        scope_filters(CallerContext(user_id=1, role="registrar"), QUERY)


def test_week_start_is_monday():
    assert week_start(date(2025, 9, 18)) == date(2025, 9, 15)
