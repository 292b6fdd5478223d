"""Create applications and timeline_entries tables.

Revision ID: 001_applications
Revises:
Create Date: 2026-10-18

Application is the tracked job/internship application; timeline_entries is
its append-only status history.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_applications"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "applications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("company", sa.String(100), nullable=False),
        sa.Column("position", sa.String(100), nullable=False),
        sa.Column("job_type", sa.String(20), nullable=False, server_default="internship"),
        sa.Column("status", sa.String(20), nullable=False, server_default="applied"),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column("source", sa.String(20), nullable=False, server_default="other"),
        sa.Column("location", sa.String(100), nullable=True),
        sa.Column("job_url", sa.Text(), nullable=True),
        sa.Column("notes", sa.String(1000), nullable=True),
        sa.Column("interview_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contact_person", sa.JSON(), nullable=True),
        sa.Column("salary_min", sa.Float(), nullable=True),
        sa.Column("salary_max", sa.Float(), nullable=True),
        sa.Column("salary_currency", sa.String(10), nullable=False, server_default="USD"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("application_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        # Check constraints
        sa.CheckConstraint(
            "status IN ('applied', 'interview', 'offer', 'rejected', 'accepted', 'withdrawn')",
            name="ck_application_status",
        ),
        sa.CheckConstraint(
            "job_type IN ('internship', 'full-time', 'part-time', 'contract', 'freelance')",
            name="ck_application_job_type",
        ),
        sa.CheckConstraint(
            "priority IN ('low', 'medium', 'high')",
            name="ck_application_priority",
        ),
        sa.CheckConstraint(
            "source IN ('linkedin', 'indeed', 'company-website', 'referral', 'other')",
            name="ck_application_source",
        ),
        sa.CheckConstraint("salary_min IS NULL OR salary_min >= 0", name="ck_application_salary_min"),
        sa.CheckConstraint("salary_max IS NULL OR salary_max >= 0", name="ck_application_salary_max"),
    )
    op.create_index("ix_applications_user_id", "applications", ["user_id"])
    op.create_index("ix_applications_user_status", "applications", ["user_id", "status"])
    op.create_index("ix_applications_user_application_date", "applications", ["user_id", "application_date"])
    op.create_index("ix_applications_user_created_at", "applications", ["user_id", "created_at"])

    op.create_table(
        "timeline_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("application_id", sa.Uuid(), nullable=False),
        sa.Column("event", sa.String(200), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("notes", sa.Text(), nullable=True),
        # Foreign keys
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_timeline_entries_application_id", "timeline_entries", ["application_id"])


def downgrade() -> None:
    op.drop_index("ix_timeline_entries_application_id")
    op.drop_table("timeline_entries")
    op.drop_index("ix_applications_user_created_at")
    op.drop_index("ix_applications_user_application_date")
    op.drop_index("ix_applications_user_status")
    op.drop_index("ix_applications_user_id")
    op.drop_table("applications")
