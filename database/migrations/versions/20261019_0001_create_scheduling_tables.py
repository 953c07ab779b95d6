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
    day_of_week = sa.Enum(
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
        name="day_of_week",
    )

    op.create_table(
        "sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("class_name", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("room_number", sa.String(length=20), nullable=False),
        sa.Column("periods_per_day", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("employee_code", sa.String(length=50), nullable=True, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_email", "teachers", ["email"], unique=True)

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"], unique=True)

    op.create_table(
        "section_subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "section_id",
            sa.String(length=36),
            sa.ForeignKey("sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("weekly_periods", sa.Integer(), nullable=False),
        sa.Column("is_mandatory", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("room_number", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("section_id", "subject_id", name="uq_section_subjects_section_subject"),
        sa.CheckConstraint(
            "weekly_periods >= 1 AND weekly_periods <= 20",
            name="ck_section_subjects_weekly_periods",
        ),
    )
    op.create_index("ix_section_subjects_section_id", "section_subjects", ["section_id"])

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "section_id",
            sa.String(length=36),
            sa.ForeignKey("sections.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id"), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id"), nullable=False),
        sa.Column("day_of_week", day_of_week, nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("room_number", sa.String(length=20), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "period_number >= 1 AND period_number <= 10",
            name="ck_timetable_entries_period_number",
        ),
        sa.CheckConstraint("start_time < end_time", name="ck_timetable_entries_time_order"),
    )
    op.create_index("ix_timetable_entries_section_id", "timetable_entries", ["section_id"])
    op.create_index("ix_timetable_entries_teacher_id", "timetable_entries", ["teacher_id"])
    op.create_index(
        "ix_timetable_entries_room_slot",
        "timetable_entries",
        ["room_number", "day_of_week", "period_number"],
    )
    op.create_index(
        "uq_timetable_entries_teacher_slot",
        "timetable_entries",
        ["teacher_id", "day_of_week", "period_number"],
        unique=True,
        postgresql_where=sa.text("is_deleted IS FALSE"),
        sqlite_where=sa.text("is_deleted = 0"),
    )
    op.create_index(
        "uq_timetable_entries_section_slot",
        "timetable_entries",
        ["section_id", "day_of_week", "period_number"],
        unique=True,
        postgresql_where=sa.text("is_deleted IS FALSE"),
        sqlite_where=sa.text("is_deleted = 0"),
    )


def downgrade() -> None:
    op.drop_index("uq_timetable_entries_section_slot", table_name="timetable_entries")
    op.drop_index("uq_timetable_entries_teacher_slot", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_room_slot", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_teacher_id", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_section_id", table_name="timetable_entries")
    op.drop_table("timetable_entries")
    op.drop_index("ix_section_subjects_section_id", table_name="section_subjects")
    op.drop_table("section_subjects")
    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_teachers_email", table_name="teachers")
    op.drop_table("teachers")
    op.drop_table("sections")
    sa.Enum(name="day_of_week").drop(op.get_bind(), checkfirst=True)
