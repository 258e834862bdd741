"""create timetable schedules and conflicts

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0003"
down_revision = "20261018_0002"
branch_labels = None
depends_on = None


schedule_status_enum = sa.Enum("scheduled", "completed", "cancelled", "migrated", name="schedule_status")
conflict_type_enum = sa.Enum(
    "lab_double_booked",
    "instructor_double_booked",
    "class_double_booked",
    "group_double_booked",
    name="conflict_type",
)


def upgrade() -> None:
    op.create_table(
        "timetable_schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "timetable_version_id",
            sa.String(length=36),
            sa.ForeignKey("timetable_versions.id"),
            nullable=False,
        ),
        sa.Column("period_id", sa.String(length=36), nullable=False),
        sa.Column("session_title", sa.String(length=200), nullable=False),
        sa.Column("session_type", sa.String(length=50), nullable=False, server_default="lecture"),
        sa.Column("session_description", sa.Text(), nullable=True),
        sa.Column("schedule_date", sa.Date(), nullable=False),
        sa.Column("lab_id", sa.String(length=36), nullable=True),
        sa.Column("room_name", sa.String(length=100), nullable=True),
        sa.Column("instructor_id", sa.String(length=36), nullable=True),
        sa.Column("instructor_name", sa.String(length=200), nullable=True),
        sa.Column("class_id", sa.String(length=36), nullable=True),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("student_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("status", schedule_status_enum, nullable=False, server_default="scheduled"),
        sa.Column("color_code", sa.String(length=20), nullable=False, server_default="#3B82F6"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_timetable_schedules_timetable_version_id", "timetable_schedules", ["timetable_version_id"])
    op.create_index("ix_timetable_schedules_period_id", "timetable_schedules", ["period_id"])
    op.create_index("ix_timetable_schedules_schedule_date", "timetable_schedules", ["schedule_date"])
    op.create_index("ix_timetable_schedules_date_lab", "timetable_schedules", ["schedule_date", "lab_id"])
    op.create_index(
        "ix_timetable_schedules_date_instructor",
        "timetable_schedules",
        ["schedule_date", "instructor_id"],
    )

    op.create_table(
        "timetable_conflicts",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "schedule_id_1",
            sa.String(length=36),
            sa.ForeignKey("timetable_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "schedule_id_2",
            sa.String(length=36),
            sa.ForeignKey("timetable_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("conflict_type", conflict_type_enum, nullable=False),
        sa.Column("conflict_description", sa.Text(), nullable=False),
        sa.Column("detected_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_timetable_conflicts_schedule_id_1", "timetable_conflicts", ["schedule_id_1"])
    op.create_index("ix_timetable_conflicts_schedule_id_2", "timetable_conflicts", ["schedule_id_2"])


def downgrade() -> None:
    op.drop_index("ix_timetable_conflicts_schedule_id_2", table_name="timetable_conflicts")
    op.drop_index("ix_timetable_conflicts_schedule_id_1", table_name="timetable_conflicts")
    op.drop_table("timetable_conflicts")
    op.drop_index("ix_timetable_schedules_date_instructor", table_name="timetable_schedules")
    op.drop_index("ix_timetable_schedules_date_lab", table_name="timetable_schedules")
    op.drop_index("ix_timetable_schedules_schedule_date", table_name="timetable_schedules")
    op.drop_index("ix_timetable_schedules_period_id", table_name="timetable_schedules")
    op.drop_index("ix_timetable_schedules_timetable_version_id", table_name="timetable_schedules")
    op.drop_table("timetable_schedules")
    conflict_type_enum.drop(op.get_bind(), checkfirst=True)
    schedule_status_enum.drop(op.get_bind(), checkfirst=True)
