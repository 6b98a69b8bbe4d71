from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SubjectType(str, Enum):
    theory = "theory"
    practical = "practical"
    lab = "lab"


class Subject(Base):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    duration_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    type: Mapped[SubjectType] = mapped_column(SAEnum(SubjectType, name="subject_type"), nullable=False)
    department: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    year_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    semester: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    # Comma-separated subject codes; not a foreign key.
    prerequisites: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def prerequisite_codes(self) -> list[str]:
        return [code.strip().upper() for code in (self.prerequisites or "").split(",") if code.strip()]
