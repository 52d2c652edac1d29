"""create schedules

Revision ID: 20261019_0003
Revises: 20261019_0002
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0003"
down_revision = "20261019_0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("section_id", sa.String(length=36), nullable=False),
        sa.Column("period_id", sa.String(length=36), nullable=False),
        sa.Column("room_id", sa.String(length=36), nullable=True),
        sa.Column("days", sa.String(length=50), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("end_time > start_time", name="ck_schedules_interval"),
    )
    op.create_index("ix_schedules_period_id", "schedules", ["period_id"], unique=False)
    op.create_index("ix_schedules_teacher_window", "schedules", ["teacher_id", "start_time", "end_time"])
    op.create_index("ix_schedules_section_window", "schedules", ["section_id", "start_time", "end_time"])
    op.create_index("ix_schedules_room_window", "schedules", ["room_id", "start_time", "end_time"])


def downgrade() -> None:
    op.drop_index("ix_schedules_room_window", table_name="schedules")
    op.drop_index("ix_schedules_section_window", table_name="schedules")
    op.drop_index("ix_schedules_teacher_window", table_name="schedules")
    op.drop_index("ix_schedules_period_id", table_name="schedules")
    op.drop_table("schedules")
