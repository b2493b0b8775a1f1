from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from party_api.core.errors import NotFound, Unauthorized
from party_api.core.ids import normalize_session_code


def get_session_row(conn: sqlite3.Connection, session_id: str) -> sqlite3.Row:
    row = conn.execute("SELECT * FROM game_sessions WHERE id=?;", (session_id,)).fetchone()
    if not row:
        raise NotFound("session not found", details={"session_id": session_id})
    return row


def get_session_row_by_code(conn: sqlite3.Connection, code: str) -> sqlite3.Row:
    norm = normalize_session_code(code)
    row = conn.execute("SELECT * FROM game_sessions WHERE session_code=?;", (norm,)).fetchone()
    if not row:
        raise NotFound("game not found, check the session code", details={"session_code": norm})
    return row


def session_code_taken(conn: sqlite3.Connection, code: str) -> bool:
    row = conn.execute("SELECT 1 FROM game_sessions WHERE session_code=? LIMIT 1;", (code,)).fetchone()
    return row is not None


def row_to_session(row: sqlite3.Row) -> Dict[str, Any]:
    d = dict(row)
    # never echo the password hash
    d["has_password"] = bool(d.pop("password", None))
    d.pop("last_actor_id", None)
    return d


# -------------------------
# Players
# -------------------------
_PLAYER_SELECT = (
    "SELECT p.*, c.name AS character_name, c.description AS character_description, "
    "c.outfit AS character_outfit, c.background AS character_background "
    "FROM game_players p JOIN characters c ON c.id = p.character_id "
)


def list_player_rows(conn: sqlite3.Connection, session_id: str) -> List[sqlite3.Row]:
    # join order is the tally tie-break order; keep it stable
    return conn.execute(
        _PLAYER_SELECT + "WHERE p.session_id=? ORDER BY p.joined_at ASC, p.rowid ASC;",
        (session_id,),
    ).fetchall()


def find_player_row(conn: sqlite3.Connection, session_id: str, user_id: str) -> Optional[sqlite3.Row]:
    return conn.execute(
        _PLAYER_SELECT + "WHERE p.session_id=? AND p.user_id=?;",
        (session_id, user_id),
    ).fetchone()


def count_players(conn: sqlite3.Connection, session_id: str) -> int:
    row = conn.execute("SELECT COUNT(1) AS n FROM game_players WHERE session_id=?;", (session_id,)).fetchone()
    return int(row["n"] if row else 0)


def row_to_player(row: sqlite3.Row, *, host_id: str, reveal_role: bool) -> Dict[str, Any]:
    d = dict(row)
    return {
        "id": d["id"],
        "session_id": d["session_id"],
        "user_id": d["user_id"],
        "display_name": d.get("display_name"),
        "is_host": d["user_id"] == host_id,
        "role": d["role"] if reveal_role else None,
        "joined_at": d.get("joined_at"),
        "character": {
            "id": d["character_id"],
            "name": d.get("character_name") or "",
            "description": d.get("character_description") or "",
            "outfit": d.get("character_outfit") or "",
            "background": d.get("character_background") or "",
        },
    }


def require_viewer(conn: sqlite3.Connection, session: sqlite3.Row, viewer_id: str) -> None:
    """Session reads are for its players and its host."""
    if session["host_id"] == viewer_id:
        return
    if find_player_row(conn, session["id"], viewer_id) is None:
        raise Unauthorized("not a player of this session", details={"session_id": session["id"]})
