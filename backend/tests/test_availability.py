import pytest

from app.core.exceptions import SubjectNotFoundError
from app.services.availability import compatibility_score, resolve_available_faculty, specialization_bonus
from app.services.workload import experience_level, workload_status


def test_compatibility_score_matches_worked_example():
    # Same department, 6 years, 1 current assignment.
    assert compatibility_score(
        same_department=True,
        experience_years=6,
        current_assignments=1,
        subject_name="Operating Systems",
        specialization=None,
    ) == 25
    # Other department, 3 years, no assignments.
    assert compatibility_score(
        same_department=False,
        experience_years=3,
        current_assignments=0,
        subject_name="Operating Systems",
        specialization=None,
    ) == 13


def test_score_caps_experience_and_floors_load_headroom():
    assert compatibility_score(
        same_department=False,
        experience_years=25,
        current_assignments=14,
        subject_name="Networks",
        specialization="",
    ) == 10


def test_specialization_bonus_counts_each_subject_word_once():
    assert specialization_bonus("Database Systems", "Distributed database systems") == 10
    assert specialization_bonus("Database Database", "databases") == 5
    # Words of three letters or fewer are ignored.
    assert specialization_bonus("Web and AI", "web ai") == 0
    assert specialization_bonus("Machine Learning", None) == 0


def test_workload_and_experience_labels():
    assert [workload_status(n) for n in (0, 2, 3, 5, 6)] == ["light", "light", "moderate", "moderate", "heavy"]
    assert experience_level(None) == "unknown"
    assert experience_level(0) == "junior"
    assert experience_level(5) == "mid"
    assert experience_level(8) == "senior"


@pytest.fixture
def staffed_subject(seed):
    subject = seed.subject("CS301", "Operating Systems", department="Computer Science")
    other_subject = seed.subject("CS302", "Compilers", department="Computer Science")
    room = seed.classroom("101")
    slots = [seed.slot("Monday", "09:00", "10:00"), seed.slot("Tuesday", "09:00", "10:00")]

    f1 = seed.faculty("Frances", "Allen", department="Computer Science", experience_years=6)
    f2 = seed.faculty("Emmy", "Noether", department="Mathematics", experience_years=3)
    assigned = seed.faculty("Ken", "Thompson", department="Computer Science", experience_years=12)
    inactive = seed.faculty("Idle", "Person", department="Computer Science", is_active=False)

    seed.entry(other_subject, f1, room, slots[0])
    seed.entry(subject, assigned, room, slots[1])
    return {"subject": subject, "f1": f1, "f2": f2, "assigned": assigned, "inactive": inactive}


def test_ranks_eligible_faculty(db, staffed_subject):
    report = resolve_available_faculty(db, staffed_subject["subject"].id)

    ids = [candidate.faculty_id for candidate in report.faculty]
    assert ids == [staffed_subject["f1"].id, staffed_subject["f2"].id]
    first, second = report.faculty
    assert first.compatibility_score == 25
    assert first.current_assignments == 1
    assert first.teaching_load == 1
    assert first.department_match is True
    assert first.workload_status == "light"
    assert first.experience_level == "mid"
    assert second.compatibility_score == 13
    assert second.department_priority == 2


def test_excludes_assigned_and_inactive_faculty(db, staffed_subject):
    report = resolve_available_faculty(db, staffed_subject["subject"].id)

    ids = {candidate.faculty_id for candidate in report.faculty}
    assert staffed_subject["assigned"].id not in ids
    assert staffed_subject["inactive"].id not in ids
    assert [item.faculty_id for item in report.currently_assigned] == [staffed_subject["assigned"].id]


def test_statistics_and_recommendations(db, staffed_subject):
    report = resolve_available_faculty(db, staffed_subject["subject"].id)

    assert report.statistics.total_available == 2
    assert report.statistics.same_department == 1
    assert report.statistics.different_department == 1
    assert report.statistics.average_assignments == 0.5
    assert report.recommendations[0].reasons == [
        "Same department (Computer Science)",
        "Experienced (6 years)",
        "Light teaching load (1 subjects)",
    ]
    assert report.recommendations[1].reasons == ["Light teaching load (0 subjects)"]


def test_ties_break_on_department_then_load_then_name(db, seed):
    subject = seed.subject("CS401", "Graphics")
    b = seed.faculty("Bea", "Zed", department="Computer Science", experience_years=1)
    a = seed.faculty("Abe", "Zed", department="Computer Science", experience_years=1)

    report = resolve_available_faculty(db, subject.id)

    assert [candidate.faculty_id for candidate in report.faculty] == [a.id, b.id]


def test_unknown_or_inactive_subject_is_not_found(db, seed):
    retired = seed.subject("CS999", "Retired Course", is_active=False)

    with pytest.raises(SubjectNotFoundError):
        resolve_available_faculty(db, 4242)
    with pytest.raises(SubjectNotFoundError):
        resolve_available_faculty(db, retired.id)
