"""
Clue visibility.

Detectives and the murderer read two disjoint streams: a clue is visible when
its round has been reached AND its murderer flag matches the viewer's role.
Always recomputed from (clues, current_round, role); nothing is cached.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from party_api.modules.players.assignment import ROLE_MURDERER


def is_visible(clue: Mapping[str, Any], current_round: int, role: str) -> bool:
    if int(clue["round_number"]) > current_round:
        return False
    for_murderer = bool(clue.get("is_for_murderer"))
    return for_murderer == (role == ROLE_MURDERER)


def visible_clues(clues: Iterable[Mapping[str, Any]], current_round: int, role: str) -> List[Dict[str, Any]]:
    out = [dict(c) for c in clues if is_visible(c, current_round, role)]
    out.sort(key=lambda c: (int(c["round_number"]), str(c.get("title") or "")))
    return out
