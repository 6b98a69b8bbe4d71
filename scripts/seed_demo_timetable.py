"""Seed demo accounts, catalog rows and a small weekly timetable.

Run:
  PYTHONPATH=backend python scripts/seed_demo_timetable.py

Prints a bearer token per account so the schedule endpoints can be tried
without a login flow.
"""

from __future__ import annotations

import os
from datetime import time

from sqlalchemy import select

from app.core.exceptions import ConflictDetectedError
from app.core.security import create_access_token
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.classroom import Classroom, ClassroomType
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.faculty import Faculty
from app.models.student import Student
from app.models.subject import Subject, SubjectType
from app.models.time_slot import TimeSlot
from app.models.timetable import TimetableEntry
from app.models.user import User, UserRole
from app.schemas.timetable import TimetableEntryCreate
from app.services.timetable_store import create_entry

ACADEMIC_YEAR = os.getenv("DEMO_ACADEMIC_YEAR", "2025-2026")
SEMESTER = int(os.getenv("DEMO_SEMESTER", "1"))
DEPARTMENT = "Computer Science"

ACCOUNTS = [
    ("admin", "Demo Admin", UserRole.admin),
    ("ada", "Ada Lovelace", UserRole.faculty),
    ("alan", "Alan Turing", UserRole.faculty),
    ("grace", "Grace Hopper", UserRole.student),
]

SUBJECTS = [
    ("CS101", "Programming Fundamentals", SubjectType.theory),
    ("CS201", "Data Structures", SubjectType.theory),
    ("CS202", "Data Structures Lab", SubjectType.lab),
]

CLASSROOMS = [
    ("101", "Main", 60, ClassroomType.lecture),
    ("L2", "Main", 30, ClassroomType.lab),
]

SLOTS = [
    ("Period 1", "Monday", time(9, 0), time(10, 0)),
    ("Period 2", "Monday", time(10, 0), time(11, 0)),
    ("Period 1", "Wednesday", time(9, 0), time(10, 0)),
    ("Lab Block", "Friday", time(14, 0), time(16, 0)),
]

# (subject code, faculty username, room number, slot index)
SCHEDULE = [
    ("CS101", "ada", "101", 0),
    ("CS201", "alan", "101", 1),
    ("CS201", "alan", "101", 2),
    ("CS202", "ada", "L2", 3),
]


def _upsert_user(session, username: str, name: str, role: UserRole) -> User:
    user = session.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user is None:
        user = User(username=username, email=f"{username}@demo.local", name=name, role=role)
        session.add(user)
    user.name = name
    user.role = role
    user.is_active = True
    session.flush()
    return user


def _ensure_profile(session, user: User) -> Faculty | Student | None:
    first_name, _, last_name = user.name.partition(" ")
    if user.role == UserRole.faculty:
        profile = session.execute(select(Faculty).where(Faculty.user_id == user.id)).scalar_one_or_none()
        if profile is None:
            profile = Faculty(
                user_id=user.id,
                employee_id=f"EMP-{user.username.upper()}",
                first_name=first_name,
                last_name=last_name or first_name,
                department=DEPARTMENT,
                specialization="Algorithms, Programming",
                experience_years=6,
            )
            session.add(profile)
    elif user.role == UserRole.student:
        profile = session.execute(select(Student).where(Student.user_id == user.id)).scalar_one_or_none()
        if profile is None:
            profile = Student(
                user_id=user.id,
                student_number=f"STU-{user.username.upper()}",
                first_name=first_name,
                last_name=last_name or first_name,
                department=DEPARTMENT,
            )
            session.add(profile)
    else:
        return None
    session.flush()
    return profile


def _upsert_subject(session, code: str, name: str, subject_type: SubjectType) -> Subject:
    subject = session.execute(select(Subject).where(Subject.code == code)).scalar_one_or_none()
    if subject is None:
        subject = Subject(code=code, name=name, type=subject_type, department=DEPARTMENT, semester=SEMESTER)
        session.add(subject)
        session.flush()
    return subject


def _upsert_classroom(session, room_number: str, building: str, capacity: int, room_type: ClassroomType) -> Classroom:
    classroom = session.execute(
        select(Classroom).where(Classroom.room_number == room_number, Classroom.building == building)
    ).scalar_one_or_none()
    if classroom is None:
        classroom = Classroom(
            room_number=room_number,
            building=building,
            capacity=capacity,
            type=room_type,
            department=DEPARTMENT,
        )
        session.add(classroom)
        session.flush()
    return classroom


def _upsert_slot(session, slot_name: str, day: str, start: time, end: time) -> TimeSlot:
    slot = session.execute(
        select(TimeSlot).where(TimeSlot.day_of_week == day, TimeSlot.start_time == start)
    ).scalar_one_or_none()
    if slot is None:
        slot = TimeSlot(slot_name=slot_name, day_of_week=day, start_time=start, end_time=end)
        session.add(slot)
        session.flush()
    return slot


def _enroll(session, student: Student, subject: Subject) -> None:
    existing = session.execute(
        select(Enrollment).where(
            Enrollment.student_id == student.id,
            Enrollment.subject_id == subject.id,
            Enrollment.section == "A",
            Enrollment.semester == SEMESTER,
            Enrollment.academic_year == ACADEMIC_YEAR,
            Enrollment.status == EnrollmentStatus.enrolled,
        )
    ).scalar_one_or_none()
    if existing is None:
        session.add(
            Enrollment(
                student_id=student.id,
                subject_id=subject.id,
                section="A",
                semester=SEMESTER,
                academic_year=ACADEMIC_YEAR,
            )
        )


def main() -> None:
    ensure_runtime_schema_compatibility()

    with SessionLocal() as session:
        users = {username: _upsert_user(session, username, name, role) for username, name, role in ACCOUNTS}
        profiles = {username: _ensure_profile(session, user) for username, user in users.items()}
        subjects = {code: _upsert_subject(session, code, name, kind) for code, name, kind in SUBJECTS}
        rooms = {number: _upsert_classroom(session, number, *rest) for number, *rest in CLASSROOMS}
        slots = [_upsert_slot(session, *slot) for slot in SLOTS]
        for subject in subjects.values():
            _enroll(session, profiles["grace"], subject)
        session.commit()

        created = 0
        for code, faculty_username, room_number, slot_index in SCHEDULE:
            payload = TimetableEntryCreate(
                subject_id=subjects[code].id,
                faculty_id=profiles[faculty_username].id,
                classroom_id=rooms[room_number].id,
                slot_id=slots[slot_index].id,
                section="A",
                academic_year=ACADEMIC_YEAR,
                semester=SEMESTER,
            )
            try:
                create_entry(session, payload, user_id=users["admin"].id)
            except ConflictDetectedError:
                # Already seeded on a previous run.
                continue
            created += 1

        total = session.execute(
            select(TimetableEntry).where(TimetableEntry.is_active.is_(True))
        ).scalars().all()

        print(f"\nTimetable entries created: {created} (active total: {len(total)})")
        print(f"Period: {ACADEMIC_YEAR} semester {SEMESTER}")
        print("\nBearer tokens:")
        for username, user in users.items():
            print(f"  - {username} ({user.role.value}): {create_access_token(user.id)}")


if __name__ == "__main__":
    main()
