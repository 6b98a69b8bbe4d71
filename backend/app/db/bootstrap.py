from __future__ import annotations

from dataclasses import dataclass, field
import logging

from sqlalchemy import Engine, func, inspect, select, text, update
from sqlalchemy.exc import IntegrityError

from app.db.base import Base
from app.db.session import engine
from app.models.timetable import CLASSROOM_SLOT_INDEX, FACULTY_SLOT_INDEX, TimetableEntry
from app.schemas.calendar import canonical_academic_year

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "username", "role", "is_active"},
    "subjects": {"id", "code", "department", "is_active"},
    "faculty": {"id", "user_id", "department", "experience_years"},
    "classrooms": {"id", "room_number", "building", "capacity"},
    "time_slots": {"id", "day_of_week", "start_time", "end_time"},
    "enrollments": {"id", "student_id", "subject_id", "section", "status"},
    "timetables": {
        "id",
        "classroom_id",
        "faculty_id",
        "slot_id",
        "academic_year",
        "semester",
        "is_active",
        "modified_by",
        "modified_at",
    },
}

RESOURCE_COLUMNS = {
    CLASSROOM_SLOT_INDEX: TimetableEntry.classroom_id,
    FACULTY_SLOT_INDEX: TimetableEntry.faculty_id,
}


def _ensure_timetable_audit_columns(bind: Engine) -> None:
    with bind.begin() as connection:
        inspector = inspect(connection)
        if "timetables" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("timetables")}
        if "modified_by" not in column_names:
            connection.execute(text("ALTER TABLE timetables ADD COLUMN modified_by INTEGER"))
        if "modified_at" not in column_names:
            timestamp_type = "TIMESTAMP WITH TIME ZONE" if connection.dialect.name == "postgresql" else "DATETIME"
            connection.execute(text(f"ALTER TABLE timetables ADD COLUMN modified_at {timestamp_type}"))


def _active_duplicate_count(connection, resource_column) -> int:
    duplicates = (
        select(resource_column)
        .where(TimetableEntry.is_active.is_(True))
        .group_by(
            resource_column,
            TimetableEntry.slot_id,
            TimetableEntry.academic_year,
            TimetableEntry.semester,
        )
        .having(func.count(TimetableEntry.id) > 1)
        .subquery()
    )
    return int(connection.execute(select(func.count()).select_from(duplicates)).scalar_one())


def canonicalize_timetable_years(bind: Engine | None = None) -> list[str]:
    """Rewrite short academic years (`2025-26`) on timetable rows to `2025-2026`.

    The booking indexes key on the stored spelling, so one spelling per period
    is what lets them guard the whole period. A spelling is left in place, with
    a warning, when rewriting it would double-book active entries.
    """
    bind = bind or engine
    with bind.connect() as connection:
        if "timetables" not in set(inspect(connection).get_table_names()):
            return []
        stored = connection.execute(select(TimetableEntry.academic_year).distinct()).scalars().all()

    rewritten: list[str] = []
    for year in sorted(stored):
        canonical = canonical_academic_year(year)
        if canonical == year:
            continue
        try:
            with bind.begin() as connection:
                connection.execute(
                    update(TimetableEntry)
                    .where(TimetableEntry.academic_year == year)
                    .values(academic_year=canonical, modified_at=TimetableEntry.modified_at)
                )
        except IntegrityError:
            logger.warning(
                "Kept academic year %s on timetables: rewriting to %s would double-book active entries",
                year,
                canonical,
            )
            continue
        rewritten.append(year)
        logger.info("Rewrote timetable academic year %s to %s", year, canonical)
    return rewritten


def ensure_timetable_constraints(bind: Engine | None = None) -> list[str]:
    """Create the active-booking unique indexes on databases that predate them.

    Returns the names of the indexes created. An index is skipped, with a
    warning, while active double bookings still exist for it.
    """
    bind = bind or engine
    created: list[str] = []
    with bind.begin() as connection:
        inspector = inspect(connection)
        if "timetables" not in set(inspector.get_table_names()):
            return created
        existing = {item["name"] for item in inspector.get_indexes("timetables")}
        for index in TimetableEntry.__table__.indexes:
            if index.name not in RESOURCE_COLUMNS or index.name in existing:
                continue
            duplicates = _active_duplicate_count(connection, RESOURCE_COLUMNS[index.name])
            if duplicates:
                logger.warning(
                    "Skipping unique index %s: %s active double bookings must be resolved first",
                    index.name,
                    duplicates,
                )
                continue
            index.create(bind=connection, checkfirst=True)
            created.append(index.name)
            logger.info("Created timetable index %s", index.name)
    return created


@dataclass
class SchemaGaps:
    missing_tables: list[str] = field(default_factory=list)
    missing_columns: dict[str, list[str]] = field(default_factory=dict)
    missing_indexes: list[str] = field(default_factory=list)

    @property
    def schema_ok(self) -> bool:
        return not self.missing_tables and not self.missing_columns


def inspect_schema(connection) -> SchemaGaps:
    """Compare the live database against the tables, columns and booking indexes the API relies on."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    gaps = SchemaGaps()
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            gaps.missing_tables.append(table_name)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            gaps.missing_columns[table_name] = missing
    if "timetables" in table_names:
        existing_indexes = {item["name"] for item in inspector.get_indexes("timetables")}
        gaps.missing_indexes = sorted(name for name in RESOURCE_COLUMNS if name not in existing_indexes)
    return gaps


def _assert_required_columns(bind: Engine) -> None:
    with bind.begin() as connection:
        gaps = inspect_schema(connection)
    if gaps.missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(sorted(gaps.missing_tables))}")
    if gaps.missing_columns:
        flattened = [
            f"{table_name}.{column_name}"
            for table_name, columns in gaps.missing_columns.items()
            for column_name in columns
        ]
        raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")


def ensure_runtime_schema_compatibility(bind: Engine | None = None) -> None:
    bind = bind or engine
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=bind)
        _ensure_timetable_audit_columns(bind)
        canonicalize_timetable_years(bind)
        ensure_timetable_constraints(bind)
        _assert_required_columns(bind)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
