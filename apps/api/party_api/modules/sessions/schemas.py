from __future__ import annotations

from typing import Literal, Optional
from pydantic import BaseModel, Field

from party_api.modules.players.schemas import PlayerOut

SessionStatus = Literal["waiting", "in_progress", "voting", "completed"]


class SessionCreateIn(BaseModel):
    story_id: str = Field(min_length=1)
    # empty -> public game
    password: Optional[str] = None
    display_name: Optional[str] = Field(None, max_length=40)


class SessionOut(BaseModel):
    id: str
    story_id: str
    host_id: str
    session_code: str
    has_password: bool = False
    status: SessionStatus
    current_round: int
    max_rounds: int
    min_players: int
    max_players: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class MembershipOut(BaseModel):
    session: SessionOut
    player: PlayerOut
    # True when an existing membership was returned instead of a new one
    reused: bool = False
