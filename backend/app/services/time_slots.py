from __future__ import annotations

from datetime import date

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.models.time_slot import TimeSlot
from app.models.timetable import TimetableEntry
from app.schemas.calendar import (
    DAY_VALUES,
    ORDERED_DAYS,
    academic_year_aliases,
    normalize_day,
    slots_overlap,
    time_to_minutes,
)
from app.schemas.time_slot import (
    AvailableSlotsOut,
    OverlappingSlot,
    ScheduledClass,
    TimeSlotDetails,
    TimeSlotOut,
)
from app.services.timetable_store import TimetableFilters, day_matches, day_order_column, list_active


def _ordered(statement):
    return statement.order_by(day_order_column(), TimeSlot.start_time.asc(), TimeSlot.id.asc())


def list_slots(db: Session, *, day: str | None = None, active_only: bool = False) -> list[TimeSlotOut]:
    statement = select(TimeSlot)
    if day:
        normalized = normalize_day(day)
        if normalized not in DAY_VALUES:
            raise ValidationError(f"Invalid day: {day}", details={"day": day})
        statement = statement.where(day_matches(normalized))
    if active_only:
        statement = statement.where(TimeSlot.is_active.is_(True))
    return [TimeSlotOut.model_validate(slot) for slot in db.execute(_ordered(statement)).scalars()]


def get_slot(db: Session, slot_id: int) -> TimeSlot:
    slot = db.get(TimeSlot, slot_id)
    if slot is None:
        raise ResourceNotFoundError("Time slot", slot_id)
    return slot


def slot_duration_minutes(slot: TimeSlot) -> int:
    return max(0, time_to_minutes(slot.end_time) - time_to_minutes(slot.start_time))


def overlapping_slots(db: Session, slot: TimeSlot) -> list[OverlappingSlot]:
    active_usage = (
        select(func.count(TimetableEntry.id))
        .where(TimetableEntry.slot_id == TimeSlot.id, TimetableEntry.is_active.is_(True))
        .correlate(TimeSlot)
        .scalar_subquery()
    )
    rows = db.execute(
        select(TimeSlot, active_usage)
        .where(day_matches(slot.day_of_week), TimeSlot.id != slot.id)
        .order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc())
    ).all()

    start, end = time_to_minutes(slot.start_time), time_to_minutes(slot.end_time)
    overlapping: list[OverlappingSlot] = []
    for other, usage_count in rows:
        if not slots_overlap(start, end, time_to_minutes(other.start_time), time_to_minutes(other.end_time)):
            continue
        overlapping.append(
            OverlappingSlot(
                slot_id=other.id,
                slot_name=other.slot_name,
                day_of_week=other.day_of_week,
                start_time=other.start_time,
                end_time=other.end_time,
                usage_count=int(usage_count or 0),
            )
        )
    return overlapping


def slot_details(db: Session, slot_id: int) -> TimeSlotDetails:
    slot = get_slot(db, slot_id)
    rows = list_active(db, TimetableFilters(slot_id=slot_id, include_inactive=True))
    active_rows = [row for row in rows if row.is_active]

    scheduled = sorted(rows, key=lambda row: (not row.is_active, row.subject_code, row.section, row.timetable_id))
    return TimeSlotDetails(
        **TimeSlotOut.model_validate(slot).model_dump(),
        duration_minutes=slot_duration_minutes(slot),
        usage_count=len(rows),
        active_usage_count=len(active_rows),
        subjects_count=len({row.subject_id for row in rows}),
        faculty_count=len({row.faculty_id for row in rows}),
        classrooms_count=len({row.classroom_id for row in rows}),
        subject_codes=sorted({row.subject_code for row in active_rows}),
        faculty_names=sorted({row.faculty_name for row in active_rows}),
        room_numbers=sorted({row.room_number for row in active_rows}),
        scheduled_classes=[
            ScheduledClass(
                timetable_id=row.timetable_id,
                section=row.section,
                semester=row.semester,
                academic_year=row.academic_year,
                is_active=row.is_active,
                subject_code=row.subject_code,
                subject_name=row.subject_name,
                faculty_name=row.faculty_name,
                room_number=row.room_number,
                building=row.building,
                enrolled_students=row.enrolled_count,
            )
            for row in scheduled
        ],
        potential_conflicts=overlapping_slots(db, slot),
    )


def available_slots(
    db: Session,
    *,
    on_date: date,
    academic_year: str,
    semester: int,
    classroom_id: int | None = None,
    faculty_id: int | None = None,
) -> AvailableSlotsOut:
    day_of_week = ORDERED_DAYS[on_date.weekday()]
    slots = db.execute(
        select(TimeSlot)
        .where(day_matches(day_of_week), TimeSlot.is_active.is_(True))
        .order_by(TimeSlot.start_time.asc(), TimeSlot.id.asc())
    ).scalars().all()

    occupied: set[int] = set()
    resource_predicates = []
    if classroom_id is not None:
        resource_predicates.append(TimetableEntry.classroom_id == classroom_id)
    if faculty_id is not None:
        resource_predicates.append(TimetableEntry.faculty_id == faculty_id)
    if resource_predicates:
        occupied = set(
            db.execute(
                select(TimetableEntry.slot_id)
                .join(TimeSlot, TimeSlot.id == TimetableEntry.slot_id)
                .where(
                    day_matches(day_of_week),
                    TimetableEntry.is_active.is_(True),
                    TimetableEntry.semester == semester,
                    TimetableEntry.academic_year.in_(academic_year_aliases(academic_year)),
                    or_(*resource_predicates),
                )
                .distinct()
            ).scalars()
        )

    return AvailableSlotsOut(
        available_slots=[TimeSlotOut.model_validate(slot) for slot in slots if slot.id not in occupied],
        occupied_slots=sorted(occupied),
        date=on_date,
        day_of_week=day_of_week,
    )
