from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


# immutable once seeded (enforced by SQLite triggers in migration)
class Story(SQLModel, table=True):
    __tablename__ = "stories"

    id: str = Field(primary_key=True)
    title: str
    description: str
    setting: str
    min_players: int
    max_players: int
    total_rounds: int

    created_at: str


class Character(SQLModel, table=True):
    __tablename__ = "characters"

    id: str = Field(primary_key=True)
    story_id: str = Field(foreign_key="stories.id")
    name: str
    description: str
    outfit: str
    background: str

    created_at: str


class Clue(SQLModel, table=True):
    __tablename__ = "clues"

    id: str = Field(primary_key=True)
    story_id: str = Field(foreign_key="stories.id")
    round_number: int
    title: str
    content: str
    # NULL in legacy rows reads as "not for the murderer"
    is_for_murderer: Optional[bool] = Field(default=False)

    created_at: str
