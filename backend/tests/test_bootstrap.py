import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from app.db import bootstrap
from app.models.timetable import CLASSROOM_SLOT_INDEX, FACULTY_SLOT_INDEX


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch, engine):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_timetable_audit_columns", lambda bind: None)
    monkeypatch.setattr(bootstrap, "ensure_timetable_constraints", lambda bind: [])
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda bind: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility(engine)


def test_audit_columns_are_added_to_legacy_timetables_table():
    legacy = create_engine("sqlite+pysqlite://", poolclass=StaticPool)
    with legacy.begin() as connection:
        connection.execute(text("CREATE TABLE timetables (id INTEGER PRIMARY KEY, is_active BOOLEAN)"))

    bootstrap._ensure_timetable_audit_columns(legacy)

    columns = {item["name"] for item in inspect(legacy).get_columns("timetables")}
    assert {"modified_by", "modified_at"} <= columns
    legacy.dispose()


def test_constraint_bootstrap_waits_for_double_bookings_to_be_resolved(engine, db, seed):
    with engine.begin() as connection:
        connection.execute(text(f"DROP INDEX {CLASSROOM_SLOT_INDEX}"))
        connection.execute(text(f"DROP INDEX {FACULTY_SLOT_INDEX}"))

    subject = seed.subject("CS201", "Data Structures")
    room = seed.classroom("101")
    slot = seed.slot("Monday", "09:00", "10:00")
    seed.entry(subject, seed.faculty("Ada", "Lovelace"), room, slot)
    clashing = seed.entry(subject, seed.faculty("Alan", "Turing"), room, slot, section="B")
    clashing_id = clashing.id
    db.close()

    assert bootstrap.ensure_timetable_constraints(engine) == [FACULTY_SLOT_INDEX]

    with engine.begin() as connection:
        connection.execute(text("UPDATE timetables SET is_active = 0 WHERE id = :id"), {"id": clashing_id})

    assert bootstrap.ensure_timetable_constraints(engine) == [CLASSROOM_SLOT_INDEX]
    index_names = {item["name"] for item in inspect(engine).get_indexes("timetables")}
    assert {CLASSROOM_SLOT_INDEX, FACULTY_SLOT_INDEX} <= index_names


def test_short_academic_years_are_rewritten_to_canonical(engine, db, seed):
    subject = seed.subject("CS201", "Data Structures")
    faculty = seed.faculty()
    legacy = seed.entry(subject, faculty, seed.classroom("101"), seed.slot("Monday"), academic_year="2025-26")
    current = seed.entry(subject, faculty, seed.classroom("102"), seed.slot("Tuesday"))
    legacy_id, current_id = legacy.id, current.id
    db.close()

    assert bootstrap.canonicalize_timetable_years(engine) == ["2025-26"]
    assert bootstrap.canonicalize_timetable_years(engine) == []

    with engine.connect() as connection:
        years = dict(connection.execute(text("SELECT id, academic_year FROM timetables")).all())
    assert years == {legacy_id: "2025-2026", current_id: "2025-2026"}


def test_short_academic_year_is_kept_when_rewrite_would_double_book(engine, db, seed):
    subject = seed.subject("CS201", "Data Structures")
    room = seed.classroom("101")
    slot = seed.slot("Monday")
    seed.entry(subject, seed.faculty("Ada", "Lovelace"), room, slot)
    legacy = seed.entry(subject, seed.faculty("Alan", "Turing"), room, slot, academic_year="2025-26")
    legacy_id = legacy.id
    db.close()

    assert bootstrap.canonicalize_timetable_years(engine) == []

    with engine.connect() as connection:
        kept = connection.execute(
            text("SELECT academic_year FROM timetables WHERE id = :id"), {"id": legacy_id}
        ).scalar_one()
    assert kept == "2025-26"
