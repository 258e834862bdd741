"""create timetable config

Revision ID: 20261018_0004
Revises: 20261018_0003
Create Date: 2026-10-18 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0004"
down_revision = "20261018_0003"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "timetable_config",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("max_lectures_per_day", sa.Integer(), nullable=False, server_default="8"),
        sa.Column("lecture_duration_minutes", sa.Integer(), nullable=False, server_default="45"),
        sa.Column("break_duration_minutes", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("start_time", sa.Time(), nullable=False, server_default="08:00:00"),
        sa.Column("end_time", sa.Time(), nullable=False, server_default="17:00:00"),
        sa.Column("working_days", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("timetable_config")
