"""story content v0 (Story/Character/Clue), immutable once seeded

Revision ID: 0001_story_content
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_story_content"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ---- tables ----
    op.create_table(
        "stories",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("setting", sa.Text(), nullable=False),
        sa.Column("min_players", sa.Integer(), nullable=False),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("total_rounds", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.CheckConstraint("min_players >= 1", name="ck_stories_min_players"),
        sa.CheckConstraint("max_players >= min_players", name="ck_stories_max_players"),
        sa.CheckConstraint("total_rounds >= 2", name="ck_stories_total_rounds"),
    )
    op.create_index("ix_stories_title", "stories", ["title"], unique=False)

    op.create_table(
        "characters",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("story_id", sa.Text(), sa.ForeignKey("stories.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("outfit", sa.Text(), nullable=False),
        sa.Column("background", sa.Text(), nullable=False),
        sa.Column("created_at", sa.Text(), nullable=False),
    )
    op.create_index("ix_characters_story_id", "characters", ["story_id"], unique=False)

    op.create_table(
        "clues",
        sa.Column("id", sa.Text(), primary_key=True),
        sa.Column("story_id", sa.Text(), sa.ForeignKey("stories.id"), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_for_murderer", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("created_at", sa.Text(), nullable=False),
        sa.CheckConstraint("round_number >= 1", name="ck_clues_round_number"),
    )
    op.create_index("ix_clues_story_id_round_number", "clues", ["story_id", "round_number"], unique=False)

    # ---- immutable content (SQLite triggers) ----
    for table in ("stories", "characters", "clues"):
        op.execute(f"""
        CREATE TRIGGER IF NOT EXISTS trg_{table}_no_update
        BEFORE UPDATE ON {table}
        BEGIN
          SELECT RAISE(ABORT, 'conflict: {table} are immutable once seeded');
        END;
        """)


def downgrade() -> None:
    for table in ("clues", "characters", "stories"):
        op.execute(f"DROP TRIGGER IF EXISTS trg_{table}_no_update;")

    op.drop_index("ix_clues_story_id_round_number", table_name="clues")
    op.drop_table("clues")

    op.drop_index("ix_characters_story_id", table_name="characters")
    op.drop_table("characters")

    op.drop_index("ix_stories_title", table_name="stories")
    op.drop_table("stories")
