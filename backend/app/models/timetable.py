from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base

# Partial unique indexes: among active entries of one period a classroom and a
# faculty member can each hold a slot only once.
CLASSROOM_SLOT_INDEX = "uq_timetables_active_classroom_slot_period"
FACULTY_SLOT_INDEX = "uq_timetables_active_faculty_slot_period"
ACTIVE_SQLITE = text("is_active = 1")
ACTIVE_POSTGRES = text("is_active")


class TimetableEntry(Base):
    __tablename__ = "timetables"
    __table_args__ = (
        Index(
            CLASSROOM_SLOT_INDEX,
            "classroom_id",
            "slot_id",
            "academic_year",
            "semester",
            unique=True,
            sqlite_where=ACTIVE_SQLITE,
            postgresql_where=ACTIVE_POSTGRES,
        ),
        Index(
            FACULTY_SLOT_INDEX,
            "faculty_id",
            "slot_id",
            "academic_year",
            "semester",
            unique=True,
            sqlite_where=ACTIVE_SQLITE,
            postgresql_where=ACTIVE_POSTGRES,
        ),
        Index("ix_timetables_subject_section_period", "subject_id", "section", "semester", "academic_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id"), nullable=False)
    faculty_id: Mapped[int] = mapped_column(ForeignKey("faculty.id"), nullable=False)
    classroom_id: Mapped[int] = mapped_column(ForeignKey("classrooms.id"), nullable=False)
    slot_id: Mapped[int] = mapped_column(ForeignKey("time_slots.id"), nullable=False)
    section: Mapped[str] = mapped_column(String(20), nullable=False, default="A")
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    modified_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
