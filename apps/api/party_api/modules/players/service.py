from __future__ import annotations

import random
import sqlite3
from typing import Any, Dict, List, Optional

from party_api.core.db import reader, transaction
from party_api.core.errors import Conflict, NotFound, Unauthorized
from party_api.core.ids import new_ulid, now_iso
from party_api.core.observability import audit
from party_api.core.passwords import verify_password
from party_api.modules.changes.service import ENTITY_PLAYER, OP_DELETE, OP_INSERT, append_change
from party_api.modules.sessions import rules
from party_api.modules.sessions.repo import (
    count_players,
    find_player_row,
    get_session_row,
    get_session_row_by_code,
    list_player_rows,
    row_to_player,
    row_to_session,
)

from .assignment import ROLE_DETECTIVE, pick_character


def can_see_role(session: sqlite3.Row, viewer_id: str, player_user_id: str) -> bool:
    # host gets no special view; roles are revealed to everyone only at the end
    return session["status"] == rules.COMPLETED or viewer_id == player_user_id


def enroll_player(
    conn: sqlite3.Connection,
    session: sqlite3.Row,
    user_id: str,
    display_name: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Draw a free character and insert the membership.
    Must run inside transaction(): the taken set is read under the write lock.
    Returns the new player id.
    """
    chars = conn.execute(
        "SELECT id FROM characters WHERE story_id=? ORDER BY id ASC;",
        (session["story_id"],),
    ).fetchall()
    taken = conn.execute(
        "SELECT character_id FROM game_players WHERE session_id=?;",
        (session["id"],),
    ).fetchall()
    character_id = pick_character([r["id"] for r in chars], [r["character_id"] for r in taken], rng)

    player_id = new_ulid()
    conn.execute(
        "INSERT INTO game_players (id, session_id, user_id, character_id, role, display_name, joined_at) "
        "VALUES (?,?,?,?,?,?,?);",
        (player_id, session["id"], user_id, character_id, ROLE_DETECTIVE, display_name, now_iso()),
    )
    append_change(
        conn,
        session_id=session["id"],
        entity=ENTITY_PLAYER,
        entity_id=player_id,
        op=OP_INSERT,
        actor_id=user_id,
    )
    return player_id


def join_session(
    session_code: str,
    password: Optional[str],
    user_id: str,
    display_name: Optional[str] = None,
    rng: Optional[random.Random] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Join by public code. Re-joining a session you already belong to returns
    the existing membership (reused=True) instead of failing.
    """
    with transaction() as conn:
        session = get_session_row_by_code(conn, session_code)

        if not verify_password(session["password"], password):
            raise Conflict("incorrect password", details={"session_code": session["session_code"]})

        existing = find_player_row(conn, session["id"], user_id)
        if existing is not None:
            return {
                "session": row_to_session(session),
                "player": row_to_player(existing, host_id=session["host_id"], reveal_role=True),
                "reused": True,
            }

        if session["status"] != rules.WAITING:
            raise Conflict(
                "this game is already in progress",
                details={"session_id": session["id"], "status": session["status"]},
            )

        n = count_players(conn, session["id"])
        if n >= int(session["max_players"]):
            raise Conflict("session is full", details={"players": n, "max_players": int(session["max_players"])})

        enroll_player(conn, session, user_id, display_name, rng)
        row = find_player_row(conn, session["id"], user_id)

    player = row_to_player(row, host_id=session["host_id"], reveal_role=True)
    audit(
        "player.joined",
        request_id,
        __name__,
        session_id=session["id"],
        player_id=player["id"],
        user_id=user_id,
        character_id=player["character"]["id"],
    )
    return {"session": row_to_session(session), "player": player, "reused": False}


def leave_session(session_id: str, user_id: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    """Frees the character for later joiners; status and host stay as they are."""
    with transaction() as conn:
        session = get_session_row(conn, session_id)
        player = find_player_row(conn, session_id, user_id)
        if player is None:
            raise NotFound("not a player of this session", details={"session_id": session_id})
        rules.require_status(session, rules.WAITING, "leave")

        conn.execute("DELETE FROM game_players WHERE id=?;", (player["id"],))
        append_change(
            conn,
            session_id=session_id,
            entity=ENTITY_PLAYER,
            entity_id=player["id"],
            op=OP_DELETE,
            actor_id=user_id,
        )

    audit(
        "player.left",
        request_id,
        __name__,
        session_id=session_id,
        player_id=player["id"],
        user_id=user_id,
        was_host=session["host_id"] == user_id,
    )
    return {"status": "left", "player_id": player["id"], "character_id": player["character_id"]}


def list_players(session_id: str, viewer_id: str) -> List[Dict[str, Any]]:
    with reader() as conn:
        session = get_session_row(conn, session_id)
        if find_player_row(conn, session_id, viewer_id) is None:
            raise Unauthorized("not a player of this session", details={"session_id": session_id})
        rows = list_player_rows(conn, session_id)
        return [
            row_to_player(r, host_id=session["host_id"], reveal_role=can_see_role(session, viewer_id, r["user_id"]))
            for r in rows
        ]
