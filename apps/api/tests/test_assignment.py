import random
from collections import Counter

import pytest

from party_api.core.errors import Conflict, ValidationFailure
from party_api.modules.players.assignment import (
    ROLE_DETECTIVE,
    ROLE_MURDERER,
    assign_roles,
    available_characters,
    pick_character,
)


@pytest.mark.parametrize("n", range(3, 9))
def test_assign_roles_exactly_one_murderer(n):
    ids = [f"p{i}" for i in range(n)]
    for seed in range(20):
        roles = assign_roles(ids, random.Random(seed))
        assert set(roles) == set(ids)
        counts = Counter(roles.values())
        assert counts[ROLE_MURDERER] == 1
        assert counts[ROLE_DETECTIVE] == n - 1


def test_assign_roles_every_player_can_be_murderer():
    ids = ["a", "b", "c", "d"]
    rng = random.Random(1234)
    seen = set()
    for _ in range(200):
        roles = assign_roles(ids, rng)
        seen.add(next(p for p, r in roles.items() if r == ROLE_MURDERER))
    assert seen == set(ids)


def test_assign_roles_without_players():
    with pytest.raises(ValidationFailure):
        assign_roles([])


def test_assign_roles_defaults_to_system_rng():
    roles = assign_roles(["a", "b", "c"])
    assert sorted(roles.values()) == [ROLE_DETECTIVE, ROLE_DETECTIVE, ROLE_MURDERER]


def test_available_characters_keeps_pool_order():
    assert available_characters(["c1", "c2", "c3", "c4"], ["c3", "c1"]) == ["c2", "c4"]


def test_pick_character_never_returns_taken():
    rng = random.Random(7)
    for _ in range(100):
        assert pick_character(["c1", "c2", "c3"], ["c1", "c3"], rng) == "c2"


def test_pick_character_covers_the_free_pool():
    rng = random.Random(99)
    picks = {pick_character(["c1", "c2", "c3", "c4"], ["c4"], rng) for _ in range(200)}
    assert picks == {"c1", "c2", "c3"}


def test_pick_character_pool_exhausted():
    with pytest.raises(Conflict) as exc:
        pick_character(["c1", "c2"], ["c1", "c2"], random.Random(0))
    assert exc.value.status_code == 409
