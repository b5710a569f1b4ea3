"""grading core tables

Revision ID: b7c41e2d9a10
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "b7c41e2d9a10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(name: str) -> bool:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    return name in inspector.get_table_names()


def upgrade() -> None:
    if not _has_table("profiles"):
        op.create_table(
            "profiles",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
            sa.Column("subscription_type", sa.String(length=20), nullable=False, server_default="free"),
            sa.Column("streak_current", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("streak_longest", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("streak_last_solved_date", sa.Date(), nullable=True),
        )
    else:
        # Existing Supabase profiles table: add the streak columns only
        existing = {c["name"] for c in sa.inspect(op.get_bind()).get_columns("profiles")}
        for column in (
            sa.Column("subscription_type", sa.String(length=20), nullable=False, server_default="free"),
            sa.Column("streak_current", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("streak_longest", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("streak_last_solved_date", sa.Date(), nullable=True),
        ):
            if column.name not in existing:
                op.add_column("profiles", column)

    if not _has_table("problems"):
        op.create_table(
            "problems",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("title", sa.String(length=255), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("difficulty", sa.String(length=16), nullable=False),
            sa.Column("visible_test_cases", postgresql.JSONB(), nullable=False, server_default="[]"),
            sa.Column("hidden_test_cases", postgresql.JSONB(), nullable=False, server_default="[]"),
            sa.Column("start_code", postgresql.JSONB(), nullable=False, server_default="[]"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
            sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.text("false")),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )

    if not _has_table("submissions"):
        op.create_table(
            "submissions",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False,
                      server_default=sa.text("gen_random_uuid()")),
            sa.Column("user_id", postgresql.UUID(as_uuid=True),
                      sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("problem_id", postgresql.UUID(as_uuid=True),
                      sa.ForeignKey("problems.id", ondelete="CASCADE"), nullable=False),
            sa.Column("code", sa.Text(), nullable=False),
            sa.Column("language", sa.String(length=20), nullable=False),
            sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
            sa.Column("runtime_ms", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("runtime_seconds", sa.Float(), nullable=False, server_default="0"),
            sa.Column("memory_kb", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("tests_passed", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("tests_total", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("error_message", sa.Text(), nullable=False, server_default=""),
            sa.Column("notes_text", sa.Text(), nullable=False, server_default=""),
            sa.Column("notes_time_taken", sa.Float(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("finalized_at", sa.DateTime(timezone=True), nullable=True),
        )
        op.create_index("ix_submissions_user_problem", "submissions", ["user_id", "problem_id"])
        op.create_index("ix_submissions_problem_status", "submissions", ["problem_id", "status"])

    if not _has_table("solved_problems"):
        op.create_table(
            "solved_problems",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False,
                      server_default=sa.text("gen_random_uuid()")),
            sa.Column("user_id", postgresql.UUID(as_uuid=True),
                      sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("problem_id", postgresql.UUID(as_uuid=True),
                      sa.ForeignKey("problems.id", ondelete="CASCADE"), nullable=False),
            sa.Column("difficulty", sa.String(length=16), nullable=True),
            sa.Column("solved_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("user_id", "problem_id", name="uq_solved_user_problem"),
        )
        op.create_index("ix_solved_problems_user_id", "solved_problems", ["user_id"])

    if not _has_table("user_badges"):
        op.create_table(
            "user_badges",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False,
                      server_default=sa.text("gen_random_uuid()")),
            sa.Column("user_id", postgresql.UUID(as_uuid=True),
                      sa.ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False),
            sa.Column("name", sa.String(length=64), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("icon_url", sa.Text(), nullable=True),
            sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.UniqueConstraint("user_id", "name", name="uq_user_badge_name"),
        )
        op.create_index("ix_user_badges_user_id", "user_badges", ["user_id"])


def downgrade() -> None:
    for table in ("user_badges", "solved_problems", "submissions", "problems"):
        if _has_table(table):
            op.drop_table(table)
    if _has_table("profiles"):
        existing = {c["name"] for c in sa.inspect(op.get_bind()).get_columns("profiles")}
        for name in ("streak_last_solved_date", "streak_longest", "streak_current", "subscription_type"):
            if name in existing:
                op.drop_column("profiles", name)
