"""Initial schema: tasks, wellbeing, staff, insights, interactions, strategy notes, context.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"))


def _fingerprint_columns() -> list[sa.Column]:
    return [
        sa.Column("fingerprint", sa.Text(), nullable=True),
        sa.Column("fingerprint_version", sa.Integer(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "tasks",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("title", sa.Text(), nullable=False, server_default=""),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("assignee", sa.String(255), nullable=True),
        sa.Column("priority", sa.String(20), nullable=False, server_default="Medium"),
        sa.Column("category", sa.String(100), nullable=False, server_default="General"),
        sa.Column("estimated_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("estimated_time", sa.String(20), nullable=True),
        sa.Column("energy_level", sa.String(40), nullable=True),
        sa.Column("is_weekly_win", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("theme_tag", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="todo"),
        sa.Column("original_source", sa.String(100), nullable=True),
        *_fingerprint_columns(),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_tasks_user_fingerprint", "tasks", ["user_id", "fingerprint"])

    op.create_table(
        "wellbeing_logs",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("mood", sa.String(50), nullable=False, server_default="Okay"),
        sa.Column("energy", sa.String(50), nullable=False, server_default="Medium"),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("source", sa.String(100), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        *_fingerprint_columns(),
        _created_at(),
    )
    op.create_index("ix_wellbeing_logs_user_created", "wellbeing_logs", ["user_id", "created_at"])

    op.create_table(
        "staff",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("initials", sa.String(20), nullable=True),
        sa.Column("role", sa.String(255), nullable=True),
        _created_at(),
    )
    op.create_index("ix_staff_user_id", "staff", ["user_id"])

    op.create_table(
        "staff_insights",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("staff_id", sa.UUID(), sa.ForeignKey("staff.id", ondelete="SET NULL"), nullable=True),
        sa.Column("staff_name", sa.String(255), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="neutral"),
        *_fingerprint_columns(),
        _created_at(),
    )
    op.create_index("ix_staff_insights_user_created", "staff_insights", ["user_id", "created_at"])

    op.create_table(
        "staff_interactions",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("staff_id", sa.UUID(), sa.ForeignKey("staff.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("staff_name", sa.String(255), nullable=True),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("interaction_type", sa.String(20), nullable=False),
        sa.Column("buck_tag", sa.String(20), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("source", sa.String(100), nullable=True),
        _created_at(),
    )

    op.create_table(
        "strategy_notes",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("theme", sa.String(255), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("linked_to", sa.String(255), nullable=True),
        *_fingerprint_columns(),
        _created_at(),
    )
    op.create_index("ix_strategy_notes_user_created", "strategy_notes", ["user_id", "created_at"])

    op.create_table(
        "user_contexts",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=False, unique=True),
        sa.Column("events", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("goals", postgresql.JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )


def downgrade() -> None:
    op.drop_table("user_contexts")
    op.drop_index("ix_strategy_notes_user_created", table_name="strategy_notes")
    op.drop_table("strategy_notes")
    op.drop_table("staff_interactions")
    op.drop_index("ix_staff_insights_user_created", table_name="staff_insights")
    op.drop_table("staff_insights")
    op.drop_index("ix_staff_user_id", table_name="staff")
    op.drop_table("staff")
    op.drop_index("ix_wellbeing_logs_user_created", table_name="wellbeing_logs")
    op.drop_table("wellbeing_logs")
    op.drop_index("ix_tasks_user_fingerprint", table_name="tasks")
    op.drop_table("tasks")
