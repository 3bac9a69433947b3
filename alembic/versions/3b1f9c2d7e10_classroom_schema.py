"""classroom schema

Revision ID: 3b1f9c2d7e10
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f9c2d7e10"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid(name: str, **kwargs) -> sa.Column:
    return sa.Column(name, postgresql.UUID(as_uuid=True), **kwargs)


def upgrade() -> None:
    op.create_table(
        "profiles",
        _uuid("user_id", primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("profile_picture_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
    )

    op.create_table(
        "courses",
        _uuid("id", primary_key=True),
        _uuid("teacher_id", sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("grade_level", sa.String(length=64), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("subcategory", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
    )
    op.create_index("ix_courses_teacher_id", "courses", ["teacher_id"])

    op.create_table(
        "course_enrollments",
        _uuid("course_id", sa.ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
        _uuid("student_id", sa.ForeignKey("profiles.user_id"), primary_key=True),
        sa.Column("enrolled_at", sa.Integer(), nullable=False),
    )

    op.create_table(
        "activities",
        _uuid("id", primary_key=True),
        _uuid("course_id", sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("goal", sa.Text(), nullable=True),
        sa.Column("activity_content", sa.Text(), nullable=True),
        sa.Column("custom_focus", sa.Text(), nullable=True),
        sa.Column("difficulty", sa.String(length=32), nullable=False),
        sa.Column("length", sa.String(length=32), nullable=True),
        sa.Column("config", postgresql.JSONB(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.Integer(), nullable=False),
    )
    op.create_index("ix_activities_course_id", "activities", ["course_id"])

    op.create_table(
        "activity_assignments",
        _uuid("id", primary_key=True),
        _uuid("activity_id", sa.ForeignKey("activities.id", ondelete="CASCADE"), nullable=False),
        _uuid("student_id", sa.ForeignKey("profiles.user_id"), nullable=False),
        _uuid("assigned_by", sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("due_date", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("assigned_at", sa.Integer(), nullable=False),
    )
    op.create_index(
        "ix_activity_assignments_student_id", "activity_assignments", ["student_id"]
    )

    op.create_table(
        "activity_runs",
        _uuid("id", primary_key=True),
        _uuid("activity_id", sa.ForeignKey("activities.id", ondelete="CASCADE"), nullable=False),
        _uuid("student_id", sa.ForeignKey("profiles.user_id"), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("messages", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.Integer(), nullable=False),
        sa.Column("started_at", sa.Integer(), nullable=True),
        sa.Column("completed_at", sa.Integer(), nullable=True),
    )
    op.create_index("ix_activity_runs_activity_id", "activity_runs", ["activity_id"])
    op.create_index("ix_activity_runs_student_id", "activity_runs", ["student_id"])

    op.create_table(
        "activity_assessments",
        _uuid("id", primary_key=True),
        _uuid(
            "activity_run_id",
            sa.ForeignKey("activity_runs.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        _uuid("student_id", sa.ForeignKey("profiles.user_id"), nullable=False),
        _uuid("course_id", sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("soft_table", postgresql.JSONB(), nullable=False),
        sa.Column("cra_table", postgresql.JSONB(), nullable=False),
        sa.Column("student_feedback", sa.Text(), nullable=False),
        sa.Column("teacher_feedback", sa.Text(), nullable=True),
        sa.Column("recommendations", postgresql.JSONB(), nullable=False),
        sa.Column("chat_context", postgresql.JSONB(), nullable=False),
        sa.Column("full_assessment", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.Integer(), nullable=False),
    )
    op.create_index(
        "ix_activity_assessments_course_id", "activity_assessments", ["course_id"]
    )


def downgrade() -> None:
    op.drop_table("activity_assessments")
    op.drop_table("activity_runs")
    op.drop_table("activity_assignments")
    op.drop_table("activities")
    op.drop_table("course_enrollments")
    op.drop_table("courses")
    op.drop_table("profiles")
