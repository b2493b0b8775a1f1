from __future__ import annotations

import sqlite3
from typing import Any, Dict, List, Optional

from party_api.core.db import reader
from party_api.core.ids import now_iso
from party_api.modules.sessions.repo import get_session_row, require_viewer

ENTITY_SESSION = "game_sessions"
ENTITY_PLAYER = "game_players"
ENTITY_VOTE = "votes"

OP_INSERT = "insert"
OP_UPDATE = "update"
OP_DELETE = "delete"


def append_change(
    conn: sqlite3.Connection,
    *,
    session_id: str,
    entity: str,
    entity_id: str,
    op: str,
    actor_id: Optional[str] = None,
) -> int:
    """
    Append-only change event, written inside the caller's transaction so the
    feed never shows a change that was rolled back.
    Returns seq.
    """
    cur = conn.execute(
        "INSERT INTO session_changes (session_id, entity, entity_id, op, actor_id, created_at) VALUES (?,?,?,?,?,?);",
        (session_id, entity, entity_id, op, actor_id, now_iso()),
    )
    return int(cur.lastrowid)


def list_changes(
    session_id: str,
    viewer_id: str,
    *,
    after: int = 0,
    entity: Optional[str] = None,
    limit: int = 100,
) -> Dict[str, Any]:
    with reader() as conn:
        session = get_session_row(conn, session_id)
        require_viewer(conn, session, viewer_id)

        where = "WHERE session_id=? AND seq>?"
        args: List[Any] = [session_id, after]
        if entity:
            where += " AND entity=?"
            args.append(entity)

        rows = conn.execute(
            f"SELECT * FROM session_changes {where} ORDER BY seq ASC LIMIT ?;",
            args + [limit],
        ).fetchall()
        items = [dict(r) for r in rows]
        last_seq = items[-1]["seq"] if items else after
        return {"items": items, "last_seq": int(last_seq)}
