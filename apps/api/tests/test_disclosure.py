from party_api.modules.clues.disclosure import is_visible, visible_clues
from party_api.modules.players.assignment import ROLE_DETECTIVE, ROLE_MURDERER

CLUES = [
    {"id": "k1", "round_number": 1, "title": "Empty vial", "is_for_murderer": False},
    {"id": "k2", "round_number": 1, "title": "Your alibi", "is_for_murderer": True},
    {"id": "k3", "round_number": 2, "title": "Torn letter", "is_for_murderer": False},
    {"id": "k4", "round_number": 2, "title": "Loose thread", "is_for_murderer": True},
    {"id": "k5", "round_number": 3, "title": "Footprints", "is_for_murderer": None},
]


def _ids(items):
    return [c["id"] for c in items]


def test_round_zero_shows_nothing():
    assert visible_clues(CLUES, 0, ROLE_DETECTIVE) == []
    assert visible_clues(CLUES, 0, ROLE_MURDERER) == []


def test_detective_stream():
    assert _ids(visible_clues(CLUES, 1, ROLE_DETECTIVE)) == ["k1"]
    assert _ids(visible_clues(CLUES, 2, ROLE_DETECTIVE)) == ["k1", "k3"]
    # a missing flag reads as a detective clue
    assert _ids(visible_clues(CLUES, 3, ROLE_DETECTIVE)) == ["k1", "k3", "k5"]


def test_murderer_stream():
    assert _ids(visible_clues(CLUES, 1, ROLE_MURDERER)) == ["k2"]
    assert _ids(visible_clues(CLUES, 3, ROLE_MURDERER)) == ["k2", "k4"]


def test_streams_are_disjoint():
    for rnd in range(0, 4):
        det = set(_ids(visible_clues(CLUES, rnd, ROLE_DETECTIVE)))
        mur = set(_ids(visible_clues(CLUES, rnd, ROLE_MURDERER)))
        assert not det & mur


def test_future_rounds_are_hidden():
    assert not is_visible(CLUES[2], 1, ROLE_DETECTIVE)
    assert is_visible(CLUES[2], 2, ROLE_DETECTIVE)


def test_same_inputs_same_view():
    first = visible_clues(CLUES, 2, ROLE_DETECTIVE)
    second = visible_clues(list(reversed(CLUES)), 2, ROLE_DETECTIVE)
    assert first == second
    # input rows are not mutated
    assert CLUES[0] == {"id": "k1", "round_number": 1, "title": "Empty vial", "is_for_murderer": False}
