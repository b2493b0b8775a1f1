from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from party_api.modules.players.schemas import PlayerOut
from party_api.modules.sessions.schemas import SessionStatus

Winner = Literal["detectives", "murderer"]


class VoteCreateIn(BaseModel):
    # user id of the accused player
    accused_id: str = Field(min_length=1)


class VoteOut(BaseModel):
    id: str
    session_id: str
    voter_id: str
    accused_id: str
    created_at: str


class TallyItemOut(BaseModel):
    player: PlayerOut
    votes: int
    has_voted: bool = False


class TallyOut(BaseModel):
    session_id: str
    status: SessionStatus
    total_votes: int
    players_count: int
    my_vote: Optional[str] = None
    items: List[TallyItemOut]


class ResultItemOut(BaseModel):
    player: PlayerOut
    votes: int


class ResultsOut(BaseModel):
    session_id: str
    winner: Winner
    tie_at_top: bool = False
    total_votes: int
    murderer: Optional[PlayerOut] = None
    most_voted: Optional[PlayerOut] = None
    items: List[ResultItemOut]
