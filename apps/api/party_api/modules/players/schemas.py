from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

Role = Literal["detective", "murderer"]


class PlayerCharacterOut(BaseModel):
    id: str
    name: str
    description: str = ""
    outfit: str = ""
    background: str = ""


class PlayerOut(BaseModel):
    id: str
    session_id: str
    user_id: str
    display_name: Optional[str] = None
    is_host: bool = False
    # None unless it is the viewer's own record or the session is completed
    role: Optional[Role] = None
    joined_at: Optional[str] = None
    character: PlayerCharacterOut


class PlayersListOut(BaseModel):
    items: List[PlayerOut]


class JoinIn(BaseModel):
    session_code: str = Field(min_length=1)
    password: Optional[str] = None
    display_name: Optional[str] = Field(None, max_length=40)


class LeaveOut(BaseModel):
    status: str = "left"
    player_id: str
    character_id: str
