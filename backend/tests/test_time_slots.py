from datetime import date

import pytest

from app.core.exceptions import ResourceNotFoundError, ValidationError
from app.services.time_slots import available_slots, list_slots, slot_details


@pytest.fixture
def week(seed):
    return {
        "mon_9": seed.slot("Monday", "09:00", "10:00"),
        "mon_930": seed.slot("Monday", "09:30", "11:00"),
        "mon_10": seed.slot("Monday", "10:00", "11:00"),
        "tue_9": seed.slot("Tuesday", "09:00", "10:00"),
        "mon_off": seed.slot("Monday", "14:00", "15:00", is_active=False),
    }


def test_list_slots_orders_by_day_then_start(db, week):
    slots = list_slots(db)
    assert [(slot.day_of_week, slot.start_time.hour) for slot in slots][:4] == [
        ("Monday", 9),
        ("Monday", 9),
        ("Monday", 10),
        ("Monday", 14),
    ]
    assert slots[-1].day_of_week == "Tuesday"


def test_list_slots_filters_by_day_and_activity(db, week):
    monday = list_slots(db, day="mon", active_only=True)
    assert {slot.id for slot in monday} == {week["mon_9"].id, week["mon_930"].id, week["mon_10"].id}

    with pytest.raises(ValidationError):
        list_slots(db, day="someday")


def test_slot_details_reports_usage_and_strict_overlaps(db, seed, week):
    subject = seed.subject("CS101", "Programming")
    faculty = seed.faculty()
    room = seed.classroom()
    seed.entry(subject, faculty, room, week["mon_9"])
    seed.entry(subject, faculty, room, week["mon_9"], section="B", is_active=False)
    seed.entry(subject, seed.faculty("Alan", "Turing"), seed.classroom("102"), week["mon_930"])

    details = slot_details(db, week["mon_9"].id)

    assert details.duration_minutes == 60
    assert details.usage_count == 2
    assert details.active_usage_count == 1
    assert details.subject_codes == ["CS101"]
    assert [item.is_active for item in details.scheduled_classes] == [True, False]
    # 10:00-11:00 only touches 09:00-10:00 at the boundary.
    assert [(item.slot_id, item.usage_count) for item in details.potential_conflicts] == [(week["mon_930"].id, 1)]

    with pytest.raises(ResourceNotFoundError):
        slot_details(db, 9999)


def test_available_slots_removes_booked_slots_for_resource(db, seed, week):
    subject = seed.subject("CS101", "Programming")
    faculty = seed.faculty()
    room = seed.classroom()
    seed.entry(subject, faculty, room, week["mon_9"])
    seed.entry(subject, faculty, room, week["mon_10"], academic_year="2026-2027")

    # 2025-09-15 is a Monday.
    result = available_slots(
        db,
        on_date=date(2025, 9, 15),
        academic_year="2025-26",
        semester=1,
        classroom_id=room.id,
    )

    assert result.day_of_week == "Monday"
    assert result.occupied_slots == [week["mon_9"].id]
    assert [slot.id for slot in result.available_slots] == [week["mon_930"].id, week["mon_10"].id]

    unfiltered = available_slots(db, on_date=date(2025, 9, 15), academic_year="2025-2026", semester=1)
    assert len(unfiltered.available_slots) == 3


def test_slot_queries_accept_loosely_spelled_days(db, seed):
    lowercase = seed.slot("monday", "08:00", "09:00")
    short = seed.slot("Mon", "12:00", "13:00")
    seed.slot("Tuesday", "08:00", "09:00")
    room = seed.classroom()
    seed.entry(seed.subject("CS101", "Programming"), seed.faculty(), room, short)

    listed = list_slots(db, day="Monday")
    assert [slot.id for slot in listed] == [lowercase.id, short.id]
    assert {slot.day_of_week for slot in listed} == {"Monday"}

    # 2025-09-15 is a Monday.
    result = available_slots(
        db,
        on_date=date(2025, 9, 15),
        academic_year="2025-2026",
        semester=1,
        classroom_id=room.id,
    )
    assert result.occupied_slots == [short.id]
    assert [slot.id for slot in result.available_slots] == [lowercase.id]
