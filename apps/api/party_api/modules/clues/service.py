from __future__ import annotations

from typing import Any, Dict

from party_api.core.db import reader
from party_api.core.errors import Unauthorized
from party_api.modules.sessions.repo import find_player_row, get_session_row

from .disclosure import visible_clues


def _row_to_clue(row) -> Dict[str, Any]:
    d = dict(row)
    d["is_for_murderer"] = bool(d.get("is_for_murderer"))
    d.pop("created_at", None)
    return d


def get_visible_clues(session_id: str, viewer_id: str) -> Dict[str, Any]:
    with reader() as conn:
        session = get_session_row(conn, session_id)
        player = find_player_row(conn, session_id, viewer_id)
        if player is None:
            raise Unauthorized("not a player of this session", details={"session_id": session_id})

        current_round = int(session["current_round"])
        rows = conn.execute(
            "SELECT * FROM clues WHERE story_id=? AND round_number<=?;",
            (session["story_id"], current_round),
        ).fetchall()
        items = visible_clues([_row_to_clue(r) for r in rows], current_round, player["role"])
        return {
            "session_id": session_id,
            "current_round": current_round,
            "max_rounds": int(session["max_rounds"]),
            "role": player["role"],
            "items": items,
        }
