from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from party_api.modules.players.assignment import ROLE_MURDERER

WINNER_DETECTIVES = "detectives"
WINNER_MURDERER = "murderer"


@dataclass(frozen=True)
class TallyEntry:
    player: Mapping[str, Any]
    votes: int


@dataclass(frozen=True)
class Outcome:
    """
    winner: detectives|murderer
    top: position 0 of the tally (None when there are no players)
    tie_at_top: top two entries share a non-zero count; the stable order
      (join order) decided which of them is `top`
    """
    winner: str
    top: Optional[TallyEntry]
    tie_at_top: bool


def tally(players: Sequence[Mapping[str, Any]], votes: Iterable[Mapping[str, Any]]) -> List[TallyEntry]:
    """
    Votes received per player (matched on user_id), most first.
    Python's sort is stable, so equal counts keep the order `players` came in.
    """
    counts: Dict[str, int] = {}
    for v in votes:
        counts[v["accused_id"]] = counts.get(v["accused_id"], 0) + 1
    entries = [TallyEntry(player=p, votes=counts.get(p["user_id"], 0)) for p in players]
    entries.sort(key=lambda e: e.votes, reverse=True)
    return entries


def outcome(entries: Sequence[TallyEntry]) -> Outcome:
    if not entries:
        return Outcome(winner=WINNER_MURDERER, top=None, tie_at_top=False)

    top = entries[0]
    tie = len(entries) > 1 and top.votes > 0 and entries[1].votes == top.votes
    caught = top.player["role"] == ROLE_MURDERER and top.votes > 0
    return Outcome(winner=WINNER_DETECTIVES if caught else WINNER_MURDERER, top=top, tie_at_top=tie)
