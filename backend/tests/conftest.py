import os
import tempfile
from datetime import time

# The app reads settings at import time; point the lifespan bootstrap at a
# throwaway SQLite file instead of the PostgreSQL default.
_BOOTSTRAP_DIR = tempfile.mkdtemp(prefix="timetable-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+pysqlite:///{_BOOTSTRAP_DIR}/bootstrap.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.classroom import Classroom, ClassroomType
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.faculty import Faculty
from app.models.student import Student
from app.models.subject import Subject, SubjectType
from app.models.time_slot import TimeSlot
from app.models.timetable import TimetableEntry
from app.models.user import User, UserRole

ACADEMIC_YEAR = "2025-2026"


class Seeder:
    """Inserts master data and timetable rows for a test."""

    def __init__(self, db: Session):
        self.db = db
        self._sequence = 0

    def _next(self) -> int:
        self._sequence += 1
        return self._sequence

    def _save(self, item):
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def user(self, role: UserRole, *, name: str | None = None, is_active: bool = True) -> User:
        n = self._next()
        return self._save(
            User(
                username=f"{role.value}{n}",
                email=f"{role.value}{n}@example.edu",
                name=name or f"{role.value.title()} {n}",
                role=role,
                is_active=is_active,
            )
        )

    def admin(self) -> User:
        return self.user(UserRole.admin)

    def faculty(
        self,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        *,
        department: str = "Computer Science",
        experience_years: int | None = None,
        specialization: str | None = None,
        designation: str = "Lecturer",
        is_active: bool = True,
    ) -> Faculty:
        account = self.user(UserRole.faculty, name=f"{first_name} {last_name}", is_active=is_active)
        return self._save(
            Faculty(
                user_id=account.id,
                employee_id=f"EMP{account.id:04d}",
                first_name=first_name,
                last_name=last_name,
                department=department,
                designation=designation,
                specialization=specialization,
                experience_years=experience_years,
            )
        )

    def student(self, first_name: str = "Sam", last_name: str = "Student", *, department: str = "Computer Science") -> Student:
        account = self.user(UserRole.student, name=f"{first_name} {last_name}")
        return self._save(
            Student(
                user_id=account.id,
                student_number=f"STU{account.id:05d}",
                first_name=first_name,
                last_name=last_name,
                department=department,
                year_level=2,
            )
        )

    def subject(
        self,
        code: str,
        name: str,
        *,
        department: str = "Computer Science",
        credits: int = 3,
        is_active: bool = True,
    ) -> Subject:
        return self._save(
            Subject(
                code=code,
                name=name,
                credits=credits,
                duration_hours=3,
                type=SubjectType.theory,
                department=department,
                year_level=2,
                semester=1,
                is_active=is_active,
            )
        )

    def classroom(self, room_number: str = "101", *, building: str = "Main", capacity: int = 40) -> Classroom:
        return self._save(
            Classroom(
                room_number=room_number,
                building=building,
                capacity=capacity,
                type=ClassroomType.lecture,
                department="Computer Science",
            )
        )

    def slot(
        self,
        day: str = "Monday",
        start: str = "09:00",
        end: str = "10:00",
        *,
        name: str | None = None,
        is_active: bool = True,
    ) -> TimeSlot:
        return self._save(
            TimeSlot(
                slot_name=name or f"{day[:3]} {start}",
                day_of_week=day,
                start_time=time.fromisoformat(start),
                end_time=time.fromisoformat(end),
                slot_type="regular",
                is_active=is_active,
            )
        )

    def entry(
        self,
        subject: Subject,
        faculty: Faculty,
        classroom: Classroom,
        slot: TimeSlot,
        *,
        section: str = "A",
        academic_year: str = ACADEMIC_YEAR,
        semester: int = 1,
        is_active: bool = True,
    ) -> TimetableEntry:
        return self._save(
            TimetableEntry(
                subject_id=subject.id,
                faculty_id=faculty.id,
                classroom_id=classroom.id,
                slot_id=slot.id,
                section=section,
                academic_year=academic_year,
                semester=semester,
                is_active=is_active,
            )
        )

    def enroll(
        self,
        student: Student,
        subject: Subject,
        *,
        section: str = "A",
        academic_year: str = ACADEMIC_YEAR,
        semester: int = 1,
        status: EnrollmentStatus = EnrollmentStatus.enrolled,
    ) -> Enrollment:
        return self._save(
            Enrollment(
                student_id=student.id,
                subject_id=subject.id,
                section=section,
                academic_year=academic_year,
                semester=semester,
                status=status,
            )
        )


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seed(db):
    return Seeder(db)


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    def build(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return build
