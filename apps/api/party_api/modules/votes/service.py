from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from party_api.core.db import reader, transaction
from party_api.core.errors import Conflict, NotFound, Unauthorized
from party_api.core.ids import new_ulid, now_iso
from party_api.core.observability import audit
from party_api.modules.changes.service import ENTITY_VOTE, OP_INSERT, append_change
from party_api.modules.players.assignment import ROLE_MURDERER
from party_api.modules.sessions import rules
from party_api.modules.sessions.repo import (
    find_player_row,
    get_session_row,
    list_player_rows,
    row_to_player,
)

from .resolution import outcome, tally


def _vote_rows(conn: sqlite3.Connection, session_id: str) -> List[sqlite3.Row]:
    return conn.execute(
        "SELECT * FROM votes WHERE session_id=? ORDER BY created_at ASC, rowid ASC;",
        (session_id,),
    ).fetchall()


def _require_member(conn: sqlite3.Connection, session_id: str, user_id: str) -> sqlite3.Row:
    player = find_player_row(conn, session_id, user_id)
    if player is None:
        raise Unauthorized("not a player of this session", details={"session_id": session_id})
    return player


def cast_vote(session_id: str, voter_id: str, accused_id: str, request_id: Optional[str] = None) -> Dict[str, Any]:
    """
    First vote is final; a second attempt is rejected, not overwritten.
    Self-votes are accepted.
    """
    with transaction() as conn:
        session = get_session_row(conn, session_id)
        rules.require_status(session, rules.VOTING, "vote")
        _require_member(conn, session_id, voter_id)

        if find_player_row(conn, session_id, accused_id) is None:
            raise NotFound("accused is not a player of this session", details={"accused_id": accused_id})

        existing = conn.execute(
            "SELECT id FROM votes WHERE session_id=? AND voter_id=?;",
            (session_id, voter_id),
        ).fetchone()
        if existing:
            raise Unauthorized("you have already cast your vote", details={"vote_id": existing["id"]})

        vote_id = new_ulid()
        now = now_iso()
        # UNIQUE(session_id, voter_id) backs the check above against racing casts
        conn.execute(
            "INSERT INTO votes (id, session_id, voter_id, accused_id, created_at) VALUES (?,?,?,?,?);",
            (vote_id, session_id, voter_id, accused_id, now),
        )
        append_change(conn, session_id=session_id, entity=ENTITY_VOTE, entity_id=vote_id, op=OP_INSERT, actor_id=voter_id)

    audit("vote.cast", request_id, __name__, session_id=session_id, vote_id=vote_id, voter_id=voter_id)
    return {"id": vote_id, "session_id": session_id, "voter_id": voter_id, "accused_id": accused_id, "created_at": now}


def get_tally(session_id: str, viewer_id: str) -> Dict[str, Any]:
    """Live counts during voting; no roles."""
    with reader() as conn:
        session = get_session_row(conn, session_id)
        if session["status"] not in (rules.VOTING, rules.COMPLETED):
            raise Conflict(
                "votes are not open yet",
                details={"session_id": session_id, "status": session["status"]},
            )
        _require_member(conn, session_id, viewer_id)

        players = list_player_rows(conn, session_id)
        votes = _vote_rows(conn, session_id)
        voters = {v["voter_id"] for v in votes}
        my_vote = next((v["accused_id"] for v in votes if v["voter_id"] == viewer_id), None)

        items = [
            {
                "player": row_to_player(e.player, host_id=session["host_id"], reveal_role=False),
                "votes": e.votes,
                "has_voted": e.player["user_id"] in voters,
            }
            for e in tally(players, votes)
        ]
        return {
            "session_id": session_id,
            "status": session["status"],
            "total_votes": len(votes),
            "players_count": len(players),
            "my_vote": my_vote,
            "items": items,
        }


def get_results(session_id: str, viewer_id: str) -> Dict[str, Any]:
    """Role reveal and winner; only once the host has ended voting."""
    with reader() as conn:
        session = get_session_row(conn, session_id)
        rules.require_status(session, rules.COMPLETED, "reveal results")
        _require_member(conn, session_id, viewer_id)

        players = list_player_rows(conn, session_id)
        votes = _vote_rows(conn, session_id)

    entries = tally(players, votes)
    res = outcome(entries)
    host_id = session["host_id"]
    murderer = next((p for p in players if p["role"] == ROLE_MURDERER), None)
    return {
        "session_id": session_id,
        "winner": res.winner,
        "tie_at_top": res.tie_at_top,
        "total_votes": len(votes),
        "murderer": row_to_player(murderer, host_id=host_id, reveal_role=True) if murderer is not None else None,
        "most_voted": (
            row_to_player(res.top.player, host_id=host_id, reveal_role=True)
            if res.top is not None and res.top.votes > 0
            else None
        ),
        "items": [
            {"player": row_to_player(e.player, host_id=host_id, reveal_role=True), "votes": e.votes}
            for e in entries
        ],
    }
