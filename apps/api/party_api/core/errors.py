"""
Game error kinds.

Each kind is an HTTPException whose detail is the envelope body
{"error", "message", "details"}; main.py adds request_id on the way out.
"""
from __future__ import annotations

import sqlite3
from typing import Any, Dict, Optional

from fastapi import HTTPException


class GameError(HTTPException):
    status_code = 500
    error = "internal_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(
            status_code=self.status_code,
            detail={"error": self.error, "message": message, "details": self.details},
        )


class NotFound(GameError):
    status_code = 404
    error = "not_found"


class Unauthorized(GameError):
    status_code = 403
    error = "unauthorized"


class Conflict(GameError):
    status_code = 409
    error = "conflict"


class ValidationFailure(GameError):
    status_code = 422
    error = "validation_failure"


class InternalError(GameError):
    def __init__(self, message: str = "internal server error", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)


# store-side guards (migration triggers) prefix their RAISE messages with a kind
_TRIGGER_KINDS = {
    "unauthorized:": Unauthorized,
    "conflict:": Conflict,
    "validation:": ValidationFailure,
    "not_found:": NotFound,
}


def from_integrity_error(e: sqlite3.IntegrityError) -> GameError:
    msg = str(e)
    for prefix, kind in _TRIGGER_KINDS.items():
        if msg.startswith(prefix):
            return kind(msg[len(prefix) :].strip(), details={"source": "store"})

    if msg.startswith("UNIQUE constraint failed: votes."):
        return Unauthorized("vote already cast", details={"source": "store"})
    if msg.startswith("UNIQUE constraint failed: game_players.session_id, game_players.character_id"):
        return Conflict("character already taken", details={"source": "store"})
    if msg.startswith("UNIQUE constraint failed: game_players.session_id, game_players.user_id"):
        return Conflict("already a member of this session", details={"source": "store"})
    if msg.startswith("UNIQUE constraint failed: game_sessions.session_code"):
        return Conflict("session code already in use", details={"source": "store"})
    if msg.startswith("UNIQUE constraint failed: game_players.session_id"):
        return Conflict("session already has a murderer", details={"source": "store"})
    return Conflict("store constraint violated", details={"source": "store", "constraint": msg})
