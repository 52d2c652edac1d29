"""create quarter packages and the approval ledger

Revision ID: 20261019_0004
Revises: 20261019_0003
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019_0004"
down_revision = "20261019_0003"
branch_labels = None
depends_on = None

PACKAGE_STATUSES = ("PENDING", "SUBMITTED", "APPROVED", "RETURNED", "FORWARDED_TO_ADMIN", "PUBLISHED")


def upgrade() -> None:
    quarter_enum = postgresql.ENUM("Q1", "Q2", "Q3", "Q4", name="quarter", create_type=False)
    package_status_enum = postgresql.ENUM(*PACKAGE_STATUSES, name="package_status", create_type=False)
    approval_action_enum = postgresql.ENUM("APPROVE", "RETURN", name="approval_action", create_type=False)
    package_status_enum.create(op.get_bind(), checkfirst=True)
    approval_action_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "quarter_packages",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("section_id", sa.String(length=36), nullable=False),
        sa.Column("quarter", quarter_enum, nullable=False),
        sa.Column("status", package_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("adviser_id", sa.String(length=36), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("section_id", "quarter", name="uq_quarter_packages_section_quarter"),
    )
    op.create_index("ix_quarter_packages_section_id", "quarter_packages", ["section_id"], unique=False)
    op.create_index("ix_quarter_packages_adviser_id", "quarter_packages", ["adviser_id"], unique=False)

    op.create_table(
        "record_approvals",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("package_id", sa.String(length=36), nullable=False),
        sa.Column("approver_id", sa.String(length=36), nullable=False),
        sa.Column("action", approval_action_enum, nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_record_approvals_package_id", "record_approvals", ["package_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_record_approvals_package_id", table_name="record_approvals")
    op.drop_table("record_approvals")
    op.drop_index("ix_quarter_packages_adviser_id", table_name="quarter_packages")
    op.drop_index("ix_quarter_packages_section_id", table_name="quarter_packages")
    op.drop_table("quarter_packages")
    postgresql.ENUM(name="approval_action", create_type=False).drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="package_status", create_type=False).drop(op.get_bind(), checkfirst=True)
