from __future__ import annotations

from typing import List
from pydantic import BaseModel, Field

from party_api.modules.players.schemas import Role


class ClueOut(BaseModel):
    id: str
    story_id: str
    round_number: int
    title: str
    content: str
    is_for_murderer: bool = False


class VisibleCluesOut(BaseModel):
    session_id: str
    current_round: int
    max_rounds: int
    # the viewer's own role only
    role: Role
    items: List[ClueOut] = Field(default_factory=list)
