"""game sessions v0 (Session/Player/Vote/SessionChange) + state-machine guards

- game_sessions: forward-only status graph, host-only transitions, frozen once completed
- game_players: joinable only while waiting, unique character per session, at most one murderer
- votes: one per (session, voter), only while voting, append-only
- session_changes: append-only change feed

Revision ID: 0002_game_sessions
Revises: 0001_story_content
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op

revision = "0002_game_sessions"
down_revision = "0001_story_content"
branch_labels = None
depends_on = None


def _trigger(name: str, timing: str, when: str, message: str) -> None:
    op.execute(f"""
    CREATE TRIGGER IF NOT EXISTS {name}
    {timing}
    WHEN {when}
    BEGIN
      SELECT RAISE(ABORT, '{message}');
    END;
    """)


def upgrade() -> None:
    # ---- tables ----
    op.execute("""
    CREATE TABLE game_sessions (
      id TEXT NOT NULL PRIMARY KEY,
      story_id TEXT NOT NULL REFERENCES stories(id),
      host_id TEXT NOT NULL,
      session_code TEXT NOT NULL UNIQUE,
      password TEXT,
      status TEXT NOT NULL DEFAULT 'waiting'
        CHECK (status IN ('waiting', 'in_progress', 'voting', 'completed')),
      current_round INTEGER NOT NULL DEFAULT 0,
      max_rounds INTEGER NOT NULL,
      min_players INTEGER NOT NULL,
      max_players INTEGER NOT NULL,
      last_actor_id TEXT,
      created_at TEXT NOT NULL,
      updated_at TEXT NOT NULL,
      CHECK (current_round >= 0 AND current_round <= max_rounds)
    );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_game_sessions_host_id ON game_sessions (host_id);")
    op.execute("CREATE INDEX IF NOT EXISTS ix_game_sessions_status ON game_sessions (status);")

    op.execute("""
    CREATE TABLE game_players (
      id TEXT NOT NULL PRIMARY KEY,
      session_id TEXT NOT NULL REFERENCES game_sessions(id),
      user_id TEXT NOT NULL,
      character_id TEXT NOT NULL REFERENCES characters(id),
      role TEXT NOT NULL DEFAULT 'detective' CHECK (role IN ('detective', 'murderer')),
      display_name TEXT,
      joined_at TEXT NOT NULL,
      UNIQUE (session_id, user_id),
      UNIQUE (session_id, character_id)
    );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_game_players_user_id ON game_players (user_id);")
    # at most one murderer per session (partial unique index)
    op.execute("""
    CREATE UNIQUE INDEX IF NOT EXISTS uq_game_players_one_murderer
    ON game_players (session_id)
    WHERE role = 'murderer';
    """)

    op.execute("""
    CREATE TABLE votes (
      id TEXT NOT NULL PRIMARY KEY,
      session_id TEXT NOT NULL REFERENCES game_sessions(id),
      voter_id TEXT NOT NULL,
      accused_id TEXT NOT NULL,
      created_at TEXT NOT NULL,
      UNIQUE (session_id, voter_id)
    );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_votes_session_id ON votes (session_id);")

    op.execute("""
    CREATE TABLE session_changes (
      seq INTEGER PRIMARY KEY AUTOINCREMENT,
      session_id TEXT NOT NULL,
      entity TEXT NOT NULL,
      entity_id TEXT NOT NULL,
      op TEXT NOT NULL,
      actor_id TEXT,
      created_at TEXT NOT NULL
    );
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_session_changes_session_seq ON session_changes (session_id, seq);")

    # ---- game_sessions guards ----
    _trigger(
        "trg_game_sessions_insert_waiting",
        "BEFORE INSERT ON game_sessions",
        "NEW.status IS NOT 'waiting' OR NEW.current_round IS NOT 0",
        "conflict: sessions start in waiting at round 0",
    )
    # the only update allowed on a completed row is the actor hand-off below
    _trigger(
        "trg_game_sessions_completed_frozen",
        "BEFORE UPDATE ON game_sessions",
        "OLD.status = 'completed' AND NOT ("
        " NEW.status IS OLD.status AND NEW.current_round IS OLD.current_round"
        " AND NEW.last_actor_id IS NULL AND OLD.last_actor_id IS NOT NULL)",
        "conflict: completed session is read-only",
    )
    _trigger(
        "trg_game_sessions_fixed_columns",
        "BEFORE UPDATE ON game_sessions",
        "NEW.host_id IS NOT OLD.host_id OR NEW.story_id IS NOT OLD.story_id"
        " OR NEW.session_code IS NOT OLD.session_code OR NEW.max_rounds IS NOT OLD.max_rounds"
        " OR NEW.min_players IS NOT OLD.min_players OR NEW.max_players IS NOT OLD.max_players",
        "conflict: session identity columns are fixed",
    )
    _trigger(
        "trg_game_sessions_host_only",
        "BEFORE UPDATE ON game_sessions",
        "(NEW.status IS NOT OLD.status OR NEW.current_round IS NOT OLD.current_round)"
        " AND NEW.last_actor_id IS NOT OLD.host_id",
        "unauthorized: only the host may change status or round",
    )
    _trigger(
        "trg_game_sessions_status_forward",
        "BEFORE UPDATE OF status ON game_sessions",
        "NEW.status IS NOT OLD.status AND NOT ("
        " (OLD.status = 'waiting' AND NEW.status = 'in_progress')"
        " OR (OLD.status = 'in_progress' AND NEW.status = 'voting')"
        " OR (OLD.status = 'voting' AND NEW.status = 'completed'))",
        "conflict: illegal status transition",
    )
    _trigger(
        "trg_game_sessions_round_forward",
        "BEFORE UPDATE OF current_round ON game_sessions",
        "NEW.current_round < OLD.current_round",
        "conflict: current_round cannot go back",
    )
    _trigger(
        "trg_game_sessions_round_phase",
        "BEFORE UPDATE OF current_round ON game_sessions",
        "NEW.current_round IS NOT OLD.current_round"
        " AND OLD.status IS NOT 'in_progress'"
        " AND NOT (OLD.status = 'waiting' AND NEW.status = 'in_progress')",
        "conflict: rounds only advance while in progress",
    )
    _trigger(
        "trg_game_sessions_final_round_votes",
        "BEFORE UPDATE ON game_sessions",
        "(NEW.status = 'in_progress' AND NEW.current_round >= NEW.max_rounds)"
        " OR (OLD.status = 'in_progress' AND NEW.status = 'voting' AND NEW.current_round IS NOT NEW.max_rounds)",
        "conflict: voting opens exactly when the final round is reached",
    )
    _trigger(
        "trg_game_sessions_start_min_players",
        "BEFORE UPDATE OF status ON game_sessions",
        "OLD.status = 'waiting' AND NEW.status = 'in_progress'"
        " AND (SELECT COUNT(1) FROM game_players WHERE session_id = NEW.id) < NEW.min_players",
        "validation: not enough players to start",
    )
    _trigger(
        "trg_game_sessions_start_one_murderer",
        "BEFORE UPDATE OF status ON game_sessions",
        "OLD.status = 'waiting' AND NEW.status = 'in_progress'"
        " AND (SELECT COUNT(1) FROM game_players WHERE session_id = NEW.id AND role = 'murderer') IS NOT 1",
        "conflict: exactly one murderer is required to start",
    )
    # the actor is single-use: every transition must name its actor again
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_game_sessions_actor_consumed
    AFTER UPDATE OF status, current_round ON game_sessions
    WHEN NEW.last_actor_id IS NOT NULL
    BEGIN
      UPDATE game_sessions SET last_actor_id = NULL WHERE id = NEW.id;
    END;
    """)

    # ---- game_players guards ----
    _trigger(
        "trg_game_players_insert_joinable",
        "BEFORE INSERT ON game_players",
        "(SELECT status FROM game_sessions WHERE id = NEW.session_id) IS NOT 'waiting'",
        "conflict: session is not joinable",
    )
    _trigger(
        "trg_game_players_insert_capacity",
        "BEFORE INSERT ON game_players",
        "(SELECT COUNT(1) FROM game_players WHERE session_id = NEW.session_id)"
        " >= (SELECT max_players FROM game_sessions WHERE id = NEW.session_id)",
        "conflict: session is full",
    )
    _trigger(
        "trg_game_players_insert_story_character",
        "BEFORE INSERT ON game_players",
        "NOT EXISTS (SELECT 1 FROM characters c JOIN game_sessions s ON s.story_id = c.story_id"
        " WHERE s.id = NEW.session_id AND c.id = NEW.character_id)",
        "conflict: character does not belong to this story",
    )
    _trigger(
        "trg_game_players_insert_detective",
        "BEFORE INSERT ON game_players",
        "NEW.role IS NOT 'detective'",
        "conflict: players join as detectives",
    )
    _trigger(
        "trg_game_players_update_waiting",
        "BEFORE UPDATE ON game_players",
        "(SELECT status FROM game_sessions WHERE id = OLD.session_id) IS NOT 'waiting'",
        "conflict: memberships are fixed once the session has started",
    )
    _trigger(
        "trg_game_players_fixed_columns",
        "BEFORE UPDATE ON game_players",
        "NEW.session_id IS NOT OLD.session_id OR NEW.user_id IS NOT OLD.user_id"
        " OR NEW.character_id IS NOT OLD.character_id",
        "conflict: membership identity columns are fixed",
    )
    _trigger(
        "trg_game_players_delete_waiting",
        "BEFORE DELETE ON game_players",
        "(SELECT status FROM game_sessions WHERE id = OLD.session_id) IS NOT 'waiting'",
        "conflict: players can only leave before the session starts",
    )

    # ---- votes guards (append-only) ----
    _trigger(
        "trg_votes_insert_voting",
        "BEFORE INSERT ON votes",
        "(SELECT status FROM game_sessions WHERE id = NEW.session_id) IS NOT 'voting'",
        "conflict: session is not accepting votes",
    )
    _trigger(
        "trg_votes_insert_voter_member",
        "BEFORE INSERT ON votes",
        "NOT EXISTS (SELECT 1 FROM game_players WHERE session_id = NEW.session_id AND user_id = NEW.voter_id)",
        "unauthorized: voter is not a player of this session",
    )
    _trigger(
        "trg_votes_insert_accused_member",
        "BEFORE INSERT ON votes",
        "NOT EXISTS (SELECT 1 FROM game_players WHERE session_id = NEW.session_id AND user_id = NEW.accused_id)",
        "not_found: accused is not a player of this session",
    )
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_votes_no_update
    BEFORE UPDATE ON votes
    BEGIN
      SELECT RAISE(ABORT, 'unauthorized: votes are final');
    END;
    """)
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_votes_no_delete
    BEFORE DELETE ON votes
    BEGIN
      SELECT RAISE(ABORT, 'unauthorized: votes are final');
    END;
    """)

    # ---- session_changes (append-only) ----
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_session_changes_no_update
    BEFORE UPDATE ON session_changes
    BEGIN
      SELECT RAISE(ABORT, 'conflict: session_changes is append-only');
    END;
    """)
    op.execute("""
    CREATE TRIGGER IF NOT EXISTS trg_session_changes_no_delete
    BEFORE DELETE ON session_changes
    BEGIN
      SELECT RAISE(ABORT, 'conflict: session_changes is append-only');
    END;
    """)


_TRIGGERS = [
    "trg_session_changes_no_delete",
    "trg_session_changes_no_update",
    "trg_votes_no_delete",
    "trg_votes_no_update",
    "trg_votes_insert_accused_member",
    "trg_votes_insert_voter_member",
    "trg_votes_insert_voting",
    "trg_game_players_delete_waiting",
    "trg_game_players_fixed_columns",
    "trg_game_players_update_waiting",
    "trg_game_players_insert_detective",
    "trg_game_players_insert_story_character",
    "trg_game_players_insert_capacity",
    "trg_game_players_insert_joinable",
    "trg_game_sessions_actor_consumed",
    "trg_game_sessions_start_one_murderer",
    "trg_game_sessions_start_min_players",
    "trg_game_sessions_final_round_votes",
    "trg_game_sessions_round_phase",
    "trg_game_sessions_round_forward",
    "trg_game_sessions_status_forward",
    "trg_game_sessions_host_only",
    "trg_game_sessions_fixed_columns",
    "trg_game_sessions_completed_frozen",
    "trg_game_sessions_insert_waiting",
]


def downgrade() -> None:
    # drop triggers first
    for name in _TRIGGERS:
        op.execute(f"DROP TRIGGER IF EXISTS {name};")

    op.execute("DROP INDEX IF EXISTS ix_session_changes_session_seq;")
    op.execute("DROP TABLE IF EXISTS session_changes;")

    op.execute("DROP INDEX IF EXISTS ix_votes_session_id;")
    op.execute("DROP TABLE IF EXISTS votes;")

    op.execute("DROP INDEX IF EXISTS uq_game_players_one_murderer;")
    op.execute("DROP INDEX IF EXISTS ix_game_players_user_id;")
    op.execute("DROP TABLE IF EXISTS game_players;")

    op.execute("DROP INDEX IF EXISTS ix_game_sessions_status;")
    op.execute("DROP INDEX IF EXISTS ix_game_sessions_host_id;")
    op.execute("DROP TABLE IF EXISTS game_sessions;")
