from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel

ChangeOp = Literal["insert", "update", "delete"]


class ChangeOut(BaseModel):
    seq: int
    session_id: str
    entity: str
    entity_id: str
    op: ChangeOp
    actor_id: Optional[str] = None
    created_at: str


class ChangesListOut(BaseModel):
    items: List[ChangeOut]
    # pass back as ?after= on the next poll
    last_seq: int
