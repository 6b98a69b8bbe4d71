from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import logging

from sqlalchemy import Select, case, exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictDetectedError, ResourceNotFoundError, ValidationError
from app.models.classroom import Classroom
from app.models.enrollment import Enrollment
from app.models.faculty import Faculty
from app.models.subject import Subject
from app.models.time_slot import TimeSlot
from app.models.timetable import TimetableEntry
from app.models.user import User
from app.schemas.calendar import DAY_ORDER, academic_year_aliases, normalize_day
from app.schemas.conflict import BookingClash
from app.schemas.schedule import ScheduleRow
from app.schemas.timetable import (
    TimetableDetail,
    TimetableEntryCreate,
    TimetableEntryUpdate,
    TimetableWriteResult,
)
from app.services.audit import log_activity
from app.services.enrollments import count_enrolled, enrolled_count_column, enrollment_matches_entry

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = (
    "subject_id",
    "faculty_id",
    "classroom_id",
    "slot_id",
    "section",
    "academic_year",
    "semester",
    "notes",
)


@dataclass(frozen=True)
class TimetableFilters:
    """Optional predicates applied to timetable reads; ``None`` means unconstrained."""

    academic_year: str | None = None
    semester: int | None = None
    faculty_id: int | None = None
    subject_id: int | None = None
    classroom_id: int | None = None
    slot_id: int | None = None
    day_of_week: str | None = None
    department: str | None = None
    student_id: int | None = None
    include_inactive: bool = False


def faculty_name_column():
    return (Faculty.first_name + " " + Faculty.last_name).label("faculty_name")


def _stored_day():
    return func.lower(func.trim(TimeSlot.day_of_week))


def day_spellings(day: str) -> list[str]:
    full = normalize_day(day)
    return list(dict.fromkeys([full.lower(), full[:3].lower()]))


def day_matches(day: str):
    """Match slots whatever case or short form (`monday`, `Mon`) their day was saved in."""
    return _stored_day().in_(day_spellings(day))


def day_order_column():
    order: dict[str, int] = {}
    for day, index in DAY_ORDER.items():
        for spelling in day_spellings(day):
            order[spelling] = index
    return case(order, value=_stored_day(), else_=len(DAY_ORDER))


def build_schedule_statement(filters: TimetableFilters) -> Select:
    statement = (
        select(
            TimetableEntry.id.label("timetable_id"),
            TimetableEntry.subject_id,
            Subject.code.label("subject_code"),
            Subject.name.label("subject_name"),
            Subject.credits,
            Subject.department,
            TimetableEntry.faculty_id,
            faculty_name_column(),
            Faculty.designation,
            Faculty.employee_id,
            TimetableEntry.classroom_id,
            Classroom.room_number,
            Classroom.building,
            Classroom.capacity,
            TimetableEntry.slot_id,
            TimeSlot.slot_name,
            TimeSlot.day_of_week,
            TimeSlot.start_time,
            TimeSlot.end_time,
            TimetableEntry.section,
            TimetableEntry.semester,
            TimetableEntry.academic_year,
            TimetableEntry.notes,
            enrolled_count_column().label("enrolled_count"),
            TimetableEntry.is_active,
            TimetableEntry.created_at,
        )
        .join(Subject, Subject.id == TimetableEntry.subject_id)
        .join(Faculty, Faculty.id == TimetableEntry.faculty_id)
        .join(Classroom, Classroom.id == TimetableEntry.classroom_id)
        .join(TimeSlot, TimeSlot.id == TimetableEntry.slot_id)
    )

    if not filters.include_inactive:
        statement = statement.where(TimetableEntry.is_active.is_(True))
    if filters.academic_year:
        statement = statement.where(TimetableEntry.academic_year.in_(academic_year_aliases(filters.academic_year)))
    if filters.semester is not None:
        statement = statement.where(TimetableEntry.semester == filters.semester)
    if filters.faculty_id is not None:
        statement = statement.where(TimetableEntry.faculty_id == filters.faculty_id)
    if filters.subject_id is not None:
        statement = statement.where(TimetableEntry.subject_id == filters.subject_id)
    if filters.classroom_id is not None:
        statement = statement.where(TimetableEntry.classroom_id == filters.classroom_id)
    if filters.slot_id is not None:
        statement = statement.where(TimetableEntry.slot_id == filters.slot_id)
    if filters.day_of_week:
        statement = statement.where(day_matches(filters.day_of_week))
    if filters.department:
        statement = statement.where(Subject.department == filters.department.strip())
    if filters.student_id is not None:
        statement = statement.where(
            exists().where(
                Enrollment.student_id == filters.student_id,
                enrollment_matches_entry(),
            )
        )

    return statement.order_by(day_order_column(), TimeSlot.start_time.asc(), TimetableEntry.id.asc())


def list_active(db: Session, filters: TimetableFilters) -> list[ScheduleRow]:
    rows = db.execute(build_schedule_statement(filters)).mappings().all()
    return [ScheduleRow.model_validate(dict(row)) for row in rows]


def get_entry(db: Session, entry_id: int) -> TimetableEntry:
    entry = db.get(TimetableEntry, entry_id)
    if entry is None:
        raise ResourceNotFoundError("Timetable entry", entry_id)
    return entry


def get_entry_detail(db: Session, entry_id: int) -> TimetableDetail:
    statement = (
        build_schedule_statement(TimetableFilters(include_inactive=True))
        .add_columns(
            Faculty.department.label("faculty_department"),
            TimetableEntry.created_by,
            User.username.label("created_by_username"),
            TimetableEntry.modified_at,
        )
        .outerjoin(User, User.id == TimetableEntry.created_by)
        .where(TimetableEntry.id == entry_id)
    )
    row = db.execute(statement).mappings().first()
    if row is None:
        raise ResourceNotFoundError("Timetable entry", entry_id)
    return TimetableDetail.model_validate(dict(row))


def find_booking_clashes(
    db: Session,
    *,
    faculty_id: int,
    classroom_id: int,
    slot_id: int,
    semester: int,
    academic_year: str,
    exclude_id: int | None = None,
) -> list[BookingClash]:
    statement = (
        select(
            TimetableEntry.id,
            TimetableEntry.faculty_id,
            TimetableEntry.classroom_id,
            Subject.code,
            Subject.name,
            faculty_name_column(),
            Classroom.room_number,
            Classroom.building,
        )
        .join(Subject, Subject.id == TimetableEntry.subject_id)
        .join(Faculty, Faculty.id == TimetableEntry.faculty_id)
        .join(Classroom, Classroom.id == TimetableEntry.classroom_id)
        .where(
            TimetableEntry.is_active.is_(True),
            TimetableEntry.slot_id == slot_id,
            TimetableEntry.semester == semester,
            TimetableEntry.academic_year.in_(academic_year_aliases(academic_year)),
            or_(TimetableEntry.faculty_id == faculty_id, TimetableEntry.classroom_id == classroom_id),
        )
        .order_by(TimetableEntry.id.asc())
    )
    if exclude_id is not None:
        statement = statement.where(TimetableEntry.id != exclude_id)

    clashes: list[BookingClash] = []
    for row in db.execute(statement).all():
        common = {
            "timetable_id": row.id,
            "subject_code": row.code,
            "subject_name": row.name,
            "faculty_name": row.faculty_name,
            "room_number": row.room_number,
            "building": row.building,
        }
        if row.faculty_id == faculty_id:
            clashes.append(
                BookingClash(
                    conflict_type="faculty",
                    message=(
                        f"Faculty conflict: already teaching {row.code} - {row.name} "
                        f"in {row.room_number} ({row.building}) at this time"
                    ),
                    **common,
                )
            )
        if row.classroom_id == classroom_id:
            clashes.append(
                BookingClash(
                    conflict_type="classroom",
                    message=(
                        f"Classroom conflict: already booked for {row.code} - {row.name} "
                        f"with {row.faculty_name} at this time"
                    ),
                    **common,
                )
            )
    return clashes


def _raise_if_clashing(db: Session, values: dict, exclude_id: int | None) -> None:
    clashes = find_booking_clashes(
        db,
        faculty_id=values["faculty_id"],
        classroom_id=values["classroom_id"],
        slot_id=values["slot_id"],
        semester=values["semester"],
        academic_year=values["academic_year"],
        exclude_id=exclude_id,
    )
    if clashes:
        raise ConflictDetectedError(
            clashes[0].message,
            details={"clashes": [clash.model_dump() for clash in clashes]},
        )


def _flush_or_conflict(db: Session, values: dict, exclude_id: int | None) -> None:
    """Flush pending writes; a unique-index violation becomes ConflictDetectedError."""
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(
            "Timetable write rejected by uniqueness constraint | slot_id=%s | academic_year=%s | semester=%s",
            values.get("slot_id"),
            values.get("academic_year"),
            values.get("semester"),
        )
        _raise_if_clashing(db, values, exclude_id)
        raise ConflictDetectedError("Timetable entry conflicts with an existing booking") from exc


def _load_references(db: Session, values: dict) -> tuple[Subject, Faculty, Classroom, TimeSlot]:
    subject = db.get(Subject, values["subject_id"])
    if subject is None:
        raise ValidationError("Subject not found", details={"subject_id": values["subject_id"]})
    if not subject.is_active:
        raise ValidationError(f"Subject {subject.code} - {subject.name} is not active")

    faculty = db.get(Faculty, values["faculty_id"])
    if faculty is None:
        raise ValidationError("Faculty member not found", details={"faculty_id": values["faculty_id"]})
    account = db.get(User, faculty.user_id)
    if account is None or not account.is_active:
        raise ValidationError(f"Faculty member {faculty.full_name} is not active")

    classroom = db.get(Classroom, values["classroom_id"])
    if classroom is None:
        raise ValidationError("Classroom not found", details={"classroom_id": values["classroom_id"]})
    if not classroom.is_active:
        raise ValidationError(f"Classroom {classroom.room_number} ({classroom.building}) is not active")

    slot = db.get(TimeSlot, values["slot_id"])
    if slot is None:
        raise ValidationError("Time slot not found", details={"slot_id": values["slot_id"]})
    if not slot.is_active:
        raise ValidationError(
            f"Time slot {slot.slot_name} ({slot.day_of_week} {slot.start_time}-{slot.end_time}) is not active"
        )
    return subject, faculty, classroom, slot


def assignment_warnings(
    db: Session,
    *,
    subject: Subject,
    faculty: Faculty,
    classroom: Classroom,
    section: str,
    semester: int,
    academic_year: str,
) -> list[str]:
    warnings: list[str] = []
    enrolled = count_enrolled(
        db,
        subject_id=subject.id,
        section=section,
        semester=semester,
        academic_year=academic_year,
    )
    capacity = classroom.capacity
    room = f"{classroom.room_number} ({classroom.building})"
    if enrolled > capacity:
        warnings.append(
            f"CAPACITY EXCEEDED: {enrolled} students enrolled but classroom {room} only has capacity for {capacity}"
        )
    elif enrolled > capacity * 0.9:
        warnings.append(f"NEAR CAPACITY: classroom {room} is nearly full ({enrolled}/{capacity} students)")
    elif enrolled > capacity * 0.8:
        warnings.append(f"HIGH OCCUPANCY: classroom {room} is at {enrolled}/{capacity} students")

    if faculty.department != subject.department:
        warnings.append(
            f"CROSS-DEPARTMENT: {faculty.full_name} from {faculty.department} teaching "
            f"{subject.department} subject ({subject.code} - {subject.name})"
        )
    return warnings


def _entry_values(entry: TimetableEntry) -> dict:
    return {field: getattr(entry, field) for field in WRITABLE_FIELDS}


def create_entry(db: Session, payload: TimetableEntryCreate, *, user_id: int) -> TimetableWriteResult:
    values = payload.model_dump()
    subject, faculty, classroom, _ = _load_references(db, values)
    _raise_if_clashing(db, values, exclude_id=None)

    entry = TimetableEntry(**values, is_active=True, created_by=user_id)
    db.add(entry)
    _flush_or_conflict(db, values, exclude_id=None)

    warnings = assignment_warnings(
        db,
        subject=subject,
        faculty=faculty,
        classroom=classroom,
        section=entry.section,
        semester=entry.semester,
        academic_year=entry.academic_year,
    )
    log_activity(
        db,
        user_id=user_id,
        action="timetable.create",
        entity_type="timetable",
        entity_id=entry.id,
        details={"values": values, "warnings": warnings},
    )
    db.commit()
    logger.info("Timetable entry created | user_id=%s | timetable_id=%s", user_id, entry.id)
    return TimetableWriteResult(
        timetable_id=entry.id,
        message="Timetable entry created successfully",
        warnings=warnings,
    )


def update_entry(
    db: Session,
    entry_id: int,
    payload: TimetableEntryUpdate,
    *,
    user_id: int,
) -> TimetableWriteResult:
    entry = get_entry(db, entry_id)
    previous = _entry_values(entry)
    changes = payload.model_dump(exclude_unset=True)
    values = {**previous, **{key: value for key, value in changes.items() if value is not None or key == "notes"}}

    subject, faculty, classroom, _ = _load_references(db, values)
    if entry.is_active:
        _raise_if_clashing(db, values, exclude_id=entry.id)

    for key, value in values.items():
        setattr(entry, key, value)
    entry.modified_by = user_id
    entry.modified_at = datetime.now(timezone.utc)
    _flush_or_conflict(db, values, exclude_id=entry_id)

    warnings = assignment_warnings(
        db,
        subject=subject,
        faculty=faculty,
        classroom=classroom,
        section=values["section"],
        semester=values["semester"],
        academic_year=values["academic_year"],
    )
    log_activity(
        db,
        user_id=user_id,
        action="timetable.update",
        entity_type="timetable",
        entity_id=entry_id,
        details={"before": previous, "after": values},
    )
    db.commit()
    logger.info("Timetable entry updated | user_id=%s | timetable_id=%s", user_id, entry_id)
    return TimetableWriteResult(
        timetable_id=entry_id,
        message="Timetable entry updated successfully",
        warnings=warnings,
    )


def deactivate_entry(db: Session, entry_id: int, *, user_id: int) -> TimetableWriteResult:
    entry = get_entry(db, entry_id)
    if entry.is_active:
        entry.is_active = False
        entry.modified_by = user_id
        entry.modified_at = datetime.now(timezone.utc)
        log_activity(
            db,
            user_id=user_id,
            action="timetable.deactivate",
            entity_type="timetable",
            entity_id=entry_id,
        )
        db.commit()
        logger.info("Timetable entry deactivated | user_id=%s | timetable_id=%s", user_id, entry_id)
    return TimetableWriteResult(timetable_id=entry_id, message="Timetable entry deactivated successfully")


def activate_entry(db: Session, entry_id: int, *, user_id: int) -> TimetableWriteResult:
    entry = get_entry(db, entry_id)
    if not entry.is_active:
        values = _entry_values(entry)
        _raise_if_clashing(db, values, exclude_id=entry_id)
        entry.is_active = True
        entry.modified_by = user_id
        entry.modified_at = datetime.now(timezone.utc)
        _flush_or_conflict(db, values, exclude_id=entry_id)
        log_activity(
            db,
            user_id=user_id,
            action="timetable.activate",
            entity_type="timetable",
            entity_id=entry_id,
        )
        db.commit()
        logger.info("Timetable entry activated | user_id=%s | timetable_id=%s", user_id, entry_id)
    return TimetableWriteResult(timetable_id=entry_id, message="Timetable entry activated successfully")
