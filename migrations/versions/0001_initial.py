"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Creative units table
    op.create_table(
        "creative_units",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("situation", sa.Text(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("stage", sa.String(50), nullable=False, server_default="situation"),
        sa.Column("video_task_id", sa.Uuid(), nullable=True),
        sa.Column("character_name", sa.String(255), nullable=True),
        sa.Column("character_task_id", sa.Uuid(), nullable=True),
        sa.Column("next_prompt", sa.Text(), nullable=True),
        sa.Column("next_task_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_creative_units_stage", "creative_units", ["stage"])

    # Provider tasks table
    op.create_table(
        "tasks",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("unit_id", sa.Uuid(), nullable=False),
        sa.Column("provider_task_id", sa.String(255), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False),
        sa.Column("stage", sa.String(50), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="waiting"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("result_url", sa.String(2048), nullable=True),
        sa.Column("local_path", sa.String(1024), nullable=True),
        sa.Column("character_id", sa.String(255), nullable=True),
        sa.Column("fail_message", sa.Text(), nullable=True),
        sa.Column("warning", sa.Text(), nullable=True),
        sa.Column("stalled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("input_data", sa.JSON(), nullable=True),
        sa.Column("last_observed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["unit_id"], ["creative_units.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_tasks_unit_id", "tasks", ["unit_id"])
    op.create_index("ix_tasks_provider_task_id", "tasks", ["provider_task_id"])
    op.create_index("ix_tasks_status", "tasks", ["status"])


def downgrade() -> None:
    op.drop_index("ix_tasks_status", table_name="tasks")
    op.drop_index("ix_tasks_provider_task_id", table_name="tasks")
    op.drop_index("ix_tasks_unit_id", table_name="tasks")
    op.drop_table("tasks")
    op.drop_index("ix_creative_units_stage", table_name="creative_units")
    op.drop_table("creative_units")
