from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from party_api.core.db import get_engine
from party_api.core.errors import NotFound, ValidationFailure
from party_api.core.ids import new_ulid, now_iso
from party_api.core.observability import audit

from .models import Character, Clue, Story


def _story_dict(s: Story) -> Dict[str, Any]:
    return s.model_dump()


def _character_dict(c: Character) -> Dict[str, Any]:
    d = c.model_dump()
    d.pop("created_at", None)
    return d


def list_stories() -> List[Dict[str, Any]]:
    with Session(get_engine()) as session:
        rows = session.exec(select(Story).order_by(Story.title)).all()
        return [_story_dict(s) for s in rows]


def get_story(story_id: str) -> Dict[str, Any]:
    with Session(get_engine()) as session:
        story = session.get(Story, story_id)
        if story is None:
            raise NotFound("story not found", details={"story_id": story_id})
        chars = session.exec(
            select(Character).where(Character.story_id == story_id).order_by(Character.name)
        ).all()
        n = session.exec(select(func.count()).select_from(Clue).where(Clue.story_id == story_id)).one()
        return {
            "story": _story_dict(story),
            "characters": [_character_dict(c) for c in chars],
            "clues_count": int(n),
        }


def _validate_story(payload: Dict[str, Any]) -> None:
    if payload["max_players"] < payload["min_players"]:
        raise ValidationFailure(
            "max_players must be >= min_players",
            details={"min_players": payload["min_players"], "max_players": payload["max_players"]},
        )
    characters = payload.get("characters") or []
    if len(characters) < payload["min_players"]:
        raise ValidationFailure(
            "a story needs at least min_players characters",
            details={"characters": len(characters), "min_players": payload["min_players"]},
        )
    for clue in payload.get("clues") or []:
        if clue["round_number"] > payload["total_rounds"]:
            raise ValidationFailure(
                "clue round_number exceeds total_rounds",
                details={"title": clue["title"], "round_number": clue["round_number"]},
            )


def create_story(payload: Dict[str, Any], request_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Content seeding: one story with its character pool and clue set, all-or-nothing.
    Rows are immutable afterwards.
    """
    _validate_story(payload)

    now = now_iso()
    story_id = new_ulid()
    with Session(get_engine()) as session:
        session.add(
            Story(
                id=story_id,
                title=payload["title"],
                description=payload.get("description") or "",
                setting=payload.get("setting") or "",
                min_players=payload["min_players"],
                max_players=payload["max_players"],
                total_rounds=payload["total_rounds"],
                created_at=now,
            )
        )
        # parent row first; the engine turns on SQLite foreign keys
        session.flush()
        for c in payload.get("characters") or []:
            session.add(Character(id=new_ulid(), story_id=story_id, created_at=now, **c))
        for cl in payload.get("clues") or []:
            session.add(Clue(id=new_ulid(), story_id=story_id, created_at=now, **cl))
        session.commit()

    audit(
        "story.created",
        request_id,
        __name__,
        story_id=story_id,
        characters=len(payload.get("characters") or []),
        clues=len(payload.get("clues") or []),
    )
    return get_story(story_id)
