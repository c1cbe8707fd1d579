"""Initial schema for Reviewpool.

Creates teams, users, pull_requests, the current reviewer assignments
(pr_reviewers) and the append-only reassignment history.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    pr_status = sa.Enum("OPEN", "MERGED", name="pr_status")
    pr_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "teams",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("teams.id"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_team_id", "users", ["team_id"])
    op.create_index("ix_users_team_active", "users", ["team_id", "is_active"])

    op.create_table(
        "pull_requests",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Text(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "status",
            sa.Enum("OPEN", "MERGED", name="pr_status", create_type=False),
            nullable=False,
            server_default="OPEN",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("merged_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_pull_requests_status", "pull_requests", ["status"])
    op.create_index("ix_pull_requests_created_at", "pull_requests", ["created_at"])

    op.create_table(
        "pr_reviewers",
        sa.Column("pr_id", sa.Text(), sa.ForeignKey("pull_requests.id"), primary_key=True),
        sa.Column("reviewer_id", sa.Text(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column(
            "assigned_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_pr_reviewers_reviewer_id", "pr_reviewers", ["reviewer_id"])

    op.create_table(
        "pr_reassignment_history",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("pr_id", sa.Text(), sa.ForeignKey("pull_requests.id"), nullable=False),
        sa.Column("old_reviewer_id", sa.Text(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("new_reviewer_id", sa.Text(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column(
            "changed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_pr_reassignment_history_pr_id", "pr_reassignment_history", ["pr_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_pr_reassignment_history_pr_id", table_name="pr_reassignment_history")
    op.drop_table("pr_reassignment_history")
    op.drop_index("ix_pr_reviewers_reviewer_id", table_name="pr_reviewers")
    op.drop_table("pr_reviewers")
    op.drop_index("ix_pull_requests_created_at", table_name="pull_requests")
    op.drop_index("ix_pull_requests_status", table_name="pull_requests")
    op.drop_table("pull_requests")
    op.drop_index("ix_users_team_active", table_name="users")
    op.drop_index("ix_users_team_id", table_name="users")
    op.drop_table("users")
    op.drop_table("teams")

    sa.Enum(name="pr_status").drop(op.get_bind(), checkfirst=True)
