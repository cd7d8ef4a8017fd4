"""create scheduling tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    room_type = sa.Enum("classroom", "laboratory", "both", name="room_type")

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("abbreviation", sa.String(length=10), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("name", name="uq_courses_name"),
    )
    op.create_index("ix_courses_abbreviation", "courses", ["abbreviation"], unique=True)

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=True),
        sa.Column("has_lab", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("lecture_units", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("lab_units", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=True)

    op.create_table(
        "subject_offerings",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("course_ids", sa.JSON(), nullable=False),
        sa.Column("year_level", sa.String(length=1), nullable=False),
        sa.Column("semester", sa.String(length=10), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("assigned_teachers", sa.JSON(), nullable=False),
        sa.Column("preferred_rooms", sa.JSON(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subject_offerings_subject_id", "subject_offerings", ["subject_id"])
    op.create_index("ix_subject_offerings_academic_year", "subject_offerings", ["academic_year"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=True),
        sa.Column("type", room_type, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_name", "rooms", ["name"], unique=True)

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("academic_year", sa.String(length=9), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("course_name", sa.String(length=200), nullable=False),
        sa.Column("course_abbreviation", sa.String(length=10), nullable=False),
        sa.Column("year_level", sa.String(length=1), nullable=False),
        sa.Column("semester", sa.String(length=10), nullable=False),
        sa.Column("events", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_schedules_academic_year", "schedules", ["academic_year"])
    op.create_index("ix_schedules_course_id", "schedules", ["course_id"])
    op.create_index("ix_schedules_is_active", "schedules", ["is_active"])


def downgrade() -> None:
    op.drop_index("ix_schedules_is_active", table_name="schedules")
    op.drop_index("ix_schedules_course_id", table_name="schedules")
    op.drop_index("ix_schedules_academic_year", table_name="schedules")
    op.drop_table("schedules")

    op.drop_index("ix_rooms_name", table_name="rooms")
    op.drop_table("rooms")

    op.drop_index("ix_subject_offerings_academic_year", table_name="subject_offerings")
    op.drop_index("ix_subject_offerings_subject_id", table_name="subject_offerings")
    op.drop_table("subject_offerings")

    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")

    op.drop_index("ix_courses_abbreviation", table_name="courses")
    op.drop_table("courses")

    sa.Enum(name="room_type").drop(op.get_bind(), checkfirst=True)
