from __future__ import annotations

import random
from typing import Any, Dict, Optional

from party_api.core.config import get_session_code_length
from party_api.core.db import reader, transaction
from party_api.core.errors import Conflict, NotFound
from party_api.core.ids import new_session_code, new_ulid, now_iso
from party_api.core.observability import audit
from party_api.core.passwords import hash_password
from party_api.modules.changes.service import (
    ENTITY_PLAYER,
    ENTITY_SESSION,
    OP_INSERT,
    OP_UPDATE,
    append_change,
)
from party_api.modules.players.assignment import assign_roles
from party_api.modules.players.service import enroll_player

from . import rules
from .repo import (
    find_player_row,
    get_session_row,
    list_player_rows,
    require_viewer,
    row_to_player,
    row_to_session,
    session_code_taken,
)

CODE_ATTEMPTS = 8


def generate_session_code(conn) -> str:
    length = get_session_code_length()
    for _ in range(CODE_ATTEMPTS):
        code = new_session_code(length)
        if not session_code_taken(conn, code):
            return code
    raise Conflict("could not allocate a unique session code", details={"attempts": CODE_ATTEMPTS})


def get_session(session_id: str, viewer_id: str) -> Dict[str, Any]:
    with reader() as conn:
        session = get_session_row(conn, session_id)
        require_viewer(conn, session, viewer_id)
        return row_to_session(session)


def create_session(
    story_id: str,
    host_id: str,
    password: Optional[str] = None,
    display_name: Optional[str] = None,
    rng: Optional[random.Random] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    New session in `waiting`, rules copied from the story, host enrolled as
    the first player (detective until the game starts).
    """
    with transaction() as conn:
        story = conn.execute("SELECT * FROM stories WHERE id=?;", (story_id,)).fetchone()
        if not story:
            raise NotFound("story not found", details={"story_id": story_id})

        session_id = new_ulid()
        code = generate_session_code(conn)
        now = now_iso()
        conn.execute(
            "INSERT INTO game_sessions (id, story_id, host_id, session_code, password, status, current_round, "
            "max_rounds, min_players, max_players, created_at, updated_at) VALUES (?,?,?,?,?,?,?,?,?,?,?,?);",
            (
                session_id,
                story_id,
                host_id,
                code,
                hash_password(password) if password else None,
                rules.WAITING,
                0,
                int(story["total_rounds"]),
                int(story["min_players"]),
                int(story["max_players"]),
                now,
                now,
            ),
        )
        append_change(
            conn, session_id=session_id, entity=ENTITY_SESSION, entity_id=session_id, op=OP_INSERT, actor_id=host_id
        )

        session = get_session_row(conn, session_id)
        enroll_player(conn, session, host_id, display_name, rng)
        host_row = find_player_row(conn, session_id, host_id)

    audit("session.created", request_id, __name__, session_id=session_id, story_id=story_id, host_id=host_id)
    return {
        "session": row_to_session(session),
        "player": row_to_player(host_row, host_id=host_id, reveal_role=True),
        "reused": False,
    }


def _write_transition(conn, session_id: str, actor_id: str, *, status: str, current_round: int) -> None:
    # last_actor_id is checked by trg_game_sessions_host_only and cleared right after
    conn.execute(
        "UPDATE game_sessions SET status=?, current_round=?, last_actor_id=?, updated_at=? WHERE id=?;",
        (status, current_round, actor_id, now_iso(), session_id),
    )
    append_change(
        conn, session_id=session_id, entity=ENTITY_SESSION, entity_id=session_id, op=OP_UPDATE, actor_id=actor_id
    )


def start_session(
    session_id: str,
    actor_id: str,
    rng: Optional[random.Random] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    waiting -> in_progress. Roles and the status flip commit together: a crash
    part-way leaves the session in `waiting` with nobody marked murderer.
    """
    with transaction() as conn:
        session = get_session_row(conn, session_id)
        players = list_player_rows(conn, session_id)
        rules.check_can_start(session, actor_id, len(players))

        roles = assign_roles([p["id"] for p in players], rng)
        for player_id, role in roles.items():
            conn.execute("UPDATE game_players SET role=? WHERE id=?;", (role, player_id))
            append_change(
                conn, session_id=session_id, entity=ENTITY_PLAYER, entity_id=player_id, op=OP_UPDATE, actor_id=actor_id
            )

        st = rules.start_state()
        _write_transition(conn, session_id, actor_id, status=st["status"], current_round=st["current_round"])
        out = row_to_session(get_session_row(conn, session_id))

    audit("session.started", request_id, __name__, session_id=session_id, players=len(players))
    return out


def advance_round(session_id: str, actor_id: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    with transaction() as conn:
        session = get_session_row(conn, session_id)
        rules.require_host(session, actor_id, "advance the round")
        rules.require_status(session, rules.IN_PROGRESS, "advance the round")

        new_round, new_status = rules.next_round(int(session["current_round"]), int(session["max_rounds"]))
        _write_transition(conn, session_id, actor_id, status=new_status, current_round=new_round)
        out = row_to_session(get_session_row(conn, session_id))

    audit(
        "session.round_advanced",
        request_id,
        __name__,
        session_id=session_id,
        current_round=new_round,
        status=new_status,
    )
    return out


def end_voting(session_id: str, actor_id: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    """Host-controlled; votes still missing simply do not count."""
    with transaction() as conn:
        session = get_session_row(conn, session_id)
        rules.require_host(session, actor_id, "end voting")
        rules.require_status(session, rules.VOTING, "end voting")

        _write_transition(
            conn, session_id, actor_id, status=rules.COMPLETED, current_round=int(session["current_round"])
        )
        out = row_to_session(get_session_row(conn, session_id))

    audit("session.voting_ended", request_id, __name__, session_id=session_id)
    return out


def get_active_session(user_id: str) -> Dict[str, Any]:
    """The user's most recent membership in a session that is not completed."""
    with reader() as conn:
        row = conn.execute(
            "SELECT s.id AS session_id FROM game_players p JOIN game_sessions s ON s.id = p.session_id "
            "WHERE p.user_id=? AND s.status<>? ORDER BY p.joined_at DESC, p.rowid DESC LIMIT 1;",
            (user_id, rules.COMPLETED),
        ).fetchone()
        if not row:
            raise NotFound("no active game", details={"user_id": user_id})

        session = get_session_row(conn, row["session_id"])
        player = find_player_row(conn, session["id"], user_id)
        return {
            "session": row_to_session(session),
            "player": row_to_player(player, host_id=session["host_id"], reveal_role=True),
            "reused": True,
        }
