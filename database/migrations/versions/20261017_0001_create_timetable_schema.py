"""create timetable schema

Revision ID: 20261017_0001
Revises: None
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("admin", "faculty", "student", name="user_role")
subject_type_enum = sa.Enum("theory", "practical", "lab", name="subject_type")
classroom_type_enum = sa.Enum("lecture", "lab", "seminar", "auditorium", name="classroom_type")
enrollment_status_enum = sa.Enum("enrolled", "dropped", "completed", name="enrollment_status")

ACTIVE_ROWS = sa.text("is_active")
ENROLLED_ROWS = sa.text("status = 'enrolled'")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "subjects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("duration_hours", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("type", subject_type_enum, nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("year_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("prerequisites", sa.String(length=500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=True)
    op.create_index("ix_subjects_department", "subjects", ["department"])

    op.create_table(
        "faculty",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("employee_id", sa.String(length=50), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False),
        sa.Column("designation", sa.String(length=200), nullable=False, server_default="Lecturer"),
        sa.Column("specialization", sa.Text(), nullable=True),
        sa.Column("experience_years", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_faculty_employee_id", "faculty", ["employee_id"], unique=True)

    op.create_table(
        "students",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("student_number", sa.String(length=50), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("year_level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_students_student_number", "students", ["student_number"], unique=True)

    op.create_table(
        "classrooms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("room_number", sa.String(length=50), nullable=False),
        sa.Column("building", sa.String(length=200), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("type", classroom_type_enum, nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("building", "room_number", name="uq_classrooms_building_room"),
    )

    op.create_table(
        "time_slots",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slot_name", sa.String(length=100), nullable=False),
        sa.Column("day_of_week", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("slot_type", sa.String(length=50), nullable=False, server_default="regular"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_time_slots_day_of_week", "time_slots", ["day_of_week"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("student_id", sa.Integer(), sa.ForeignKey("students.id"), nullable=False),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("section", sa.String(length=20), nullable=False, server_default="A"),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("status", enrollment_status_enum, nullable=False, server_default="enrolled"),
        sa.Column("enrollment_date", sa.Date(), nullable=False, server_default=sa.func.current_date()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index(
        "uq_enrollments_active_student_subject_section_period",
        "enrollments",
        ["student_id", "subject_id", "section", "semester", "academic_year"],
        unique=True,
        postgresql_where=ENROLLED_ROWS,
        sqlite_where=ENROLLED_ROWS,
    )
    op.create_index(
        "ix_enrollments_subject_section_period",
        "enrollments",
        ["subject_id", "section", "semester", "academic_year"],
    )

    op.create_table(
        "timetables",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("subject_id", sa.Integer(), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("faculty_id", sa.Integer(), sa.ForeignKey("faculty.id"), nullable=False),
        sa.Column("classroom_id", sa.Integer(), sa.ForeignKey("classrooms.id"), nullable=False),
        sa.Column("slot_id", sa.Integer(), sa.ForeignKey("time_slots.id"), nullable=False),
        sa.Column("section", sa.String(length=20), nullable=False, server_default="A"),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("modified_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("modified_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "uq_timetables_active_classroom_slot_period",
        "timetables",
        ["classroom_id", "slot_id", "academic_year", "semester"],
        unique=True,
        postgresql_where=ACTIVE_ROWS,
        sqlite_where=sa.text("is_active = 1"),
    )
    op.create_index(
        "uq_timetables_active_faculty_slot_period",
        "timetables",
        ["faculty_id", "slot_id", "academic_year", "semester"],
        unique=True,
        postgresql_where=ACTIVE_ROWS,
        sqlite_where=sa.text("is_active = 1"),
    )
    op.create_index(
        "ix_timetables_subject_section_period",
        "timetables",
        ["subject_id", "section", "semester", "academic_year"],
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_index("ix_timetables_subject_section_period", table_name="timetables")
    op.drop_index("uq_timetables_active_faculty_slot_period", table_name="timetables")
    op.drop_index("uq_timetables_active_classroom_slot_period", table_name="timetables")
    op.drop_table("timetables")
    op.drop_index("ix_enrollments_subject_section_period", table_name="enrollments")
    op.drop_index("uq_enrollments_active_student_subject_section_period", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("ix_time_slots_day_of_week", table_name="time_slots")
    op.drop_table("time_slots")
    op.drop_table("classrooms")
    op.drop_index("ix_students_student_number", table_name="students")
    op.drop_table("students")
    op.drop_index("ix_faculty_employee_id", table_name="faculty")
    op.drop_table("faculty")
    op.drop_index("ix_subjects_department", table_name="subjects")
    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
    bind = op.get_bind()
    for enum_type in (enrollment_status_enum, classroom_type_enum, subject_type_enum, user_role_enum):
        enum_type.drop(bind, checkfirst=True)
