from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field


class CharacterIn(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    outfit: str = ""
    background: str = ""


class ClueIn(BaseModel):
    round_number: int = Field(ge=1)
    title: str = Field(min_length=1)
    content: str = ""
    is_for_murderer: bool = False


class StoryCreateIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    setting: str = ""
    min_players: int = Field(3, ge=1)
    max_players: int = Field(8, ge=1)
    # round 1 opens on start; voting opens when max_rounds is reached
    total_rounds: int = Field(5, ge=2)
    characters: List[CharacterIn] = Field(default_factory=list)
    clues: List[ClueIn] = Field(default_factory=list)


class CharacterOut(BaseModel):
    id: str
    story_id: str
    name: str
    description: str
    outfit: str
    background: str


class StoryOut(BaseModel):
    id: str
    title: str
    description: str
    setting: str
    min_players: int
    max_players: int
    total_rounds: int
    created_at: Optional[str] = None


class StoryDetailOut(BaseModel):
    story: StoryOut
    characters: List[CharacterOut] = Field(default_factory=list)
    clues_count: int = 0


class StoriesListOut(BaseModel):
    items: List[StoryOut]
