"""Assessment content, modifier tables and student results."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20250801_01_initial_content"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "assessments",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("kind", sa.String(length=32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("academic_year", sa.String(length=16), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("quiz_type", sa.String(length=32), nullable=False, server_default="personality"),
        sa.Column("target_grades", sa.JSON(), nullable=False),
        sa.Column("definition", sa.JSON(), nullable=False),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_assessments_kind_year", "assessments", ["kind", "academic_year"])
    op.create_index("ix_assessments_status", "assessments", ["status"])

    op.create_table(
        "modifier_content",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("code", sa.String(length=8), nullable=False),
        sa.Column("audience", sa.String(length=16), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("emoji", sa.String(length=16), nullable=True),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.UniqueConstraint("code", "audience", name="uq_modifier_code_audience"),
    )

    op.create_table(
        "student_assessment_results",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_id", sa.String(length=128), nullable=False),
        sa.Column("assessment_id", sa.String(length=64), nullable=False),
        sa.Column("outcome_key", sa.String(length=128), nullable=False),
        sa.Column("scores", sa.JSON(), nullable=False),
        sa.Column("modifier_keys", sa.JSON(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("times_completed", sa.Integer(), nullable=False, server_default="1"),
        sa.UniqueConstraint("student_id", "assessment_id", name="uq_student_assessment_result"),
    )
    op.create_index("ix_student_results_student", "student_assessment_results", ["student_id"])

    op.create_table(
        "persistence_audit_events",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("subject", sa.String(length=128), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("actor", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_audit_events_type", "persistence_audit_events", ["event_type"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_type", table_name="persistence_audit_events")
    op.drop_table("persistence_audit_events")
    op.drop_index("ix_student_results_student", table_name="student_assessment_results")
    op.drop_table("student_assessment_results")
    op.drop_table("modifier_content")
    op.drop_index("ix_assessments_status", table_name="assessments")
    op.drop_index("ix_assessments_kind_year", table_name="assessments")
    op.drop_table("assessments")
