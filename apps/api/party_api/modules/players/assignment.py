"""
Character draw and role assignment.

Both are uniform random picks. Callers pass an `rng` so tests can seed it;
production uses the OS entropy source.
"""
from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from party_api.core.errors import Conflict, ValidationFailure

ROLE_DETECTIVE = "detective"
ROLE_MURDERER = "murderer"

_system_rng = random.SystemRandom()

T = TypeVar("T")


def _rng(rng: Optional[random.Random]) -> random.Random:
    return rng if rng is not None else _system_rng


def available_characters(character_ids: Sequence[str], taken_ids: Iterable[str]) -> List[str]:
    taken = set(taken_ids)
    return [cid for cid in character_ids if cid not in taken]


def pick_character(
    character_ids: Sequence[str],
    taken_ids: Iterable[str],
    rng: Optional[random.Random] = None,
) -> str:
    pool = available_characters(character_ids, taken_ids)
    if not pool:
        raise Conflict("no characters left in this story", details={"characters": len(character_ids)})
    return _rng(rng).choice(pool)


def assign_roles(player_ids: Sequence[T], rng: Optional[random.Random] = None) -> Dict[T, str]:
    """Exactly one murderer, everyone else a detective."""
    if not player_ids:
        raise ValidationFailure("cannot assign roles without players")
    murderer = _rng(rng).choice(list(player_ids))
    return {pid: (ROLE_MURDERER if pid == murderer else ROLE_DETECTIVE) for pid in player_ids}
