"""
Session lifecycle: waiting -> in_progress -> voting -> completed.

Pure checks only; the service applies them inside a transaction and the
store repeats them as triggers (migration 0002).
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Tuple

from party_api.core.errors import Conflict, Unauthorized, ValidationFailure

WAITING = "waiting"
IN_PROGRESS = "in_progress"
VOTING = "voting"
COMPLETED = "completed"

FIRST_ROUND = 1


def is_host(session: Mapping[str, Any], user_id: str) -> bool:
    return session["host_id"] == user_id


def require_host(session: Mapping[str, Any], actor_id: str, action: str) -> None:
    if not is_host(session, actor_id):
        raise Unauthorized(f"only the host may {action}", details={"session_id": session["id"]})


def require_status(session: Mapping[str, Any], expected: str, action: str) -> None:
    if session["status"] != expected:
        raise Conflict(
            f"cannot {action} while session is {session['status']}",
            details={"session_id": session["id"], "status": session["status"], "expected": expected},
        )


def check_can_start(session: Mapping[str, Any], actor_id: str, player_count: int) -> None:
    require_host(session, actor_id, "start the game")
    require_status(session, WAITING, "start")
    if player_count < int(session["min_players"]):
        raise ValidationFailure(
            f"need at least {session['min_players']} players to start",
            details={"players": player_count, "min_players": int(session["min_players"])},
        )


def next_round(current_round: int, max_rounds: int) -> Tuple[int, str]:
    """
    One host advance. Reaching max_rounds opens voting in the same write.
    Returns (new_round, new_status).
    """
    new_round = current_round + 1
    if new_round > max_rounds:
        raise Conflict("no rounds left", details={"current_round": current_round, "max_rounds": max_rounds})
    if new_round == max_rounds:
        return new_round, VOTING
    return new_round, IN_PROGRESS


def start_state() -> Dict[str, Any]:
    return {"status": IN_PROGRESS, "current_round": FIRST_ROUND}
