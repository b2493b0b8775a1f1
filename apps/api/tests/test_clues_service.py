import pytest
from conftest import HOST, murderer_of, player_rows

from party_api.core.errors import Unauthorized
from party_api.modules.clues.service import get_visible_clues
from party_api.modules.sessions.service import advance_round, start_session


def _titles(view):
    return [c["title"] for c in view["items"]]


def test_no_clues_before_start(lobby):
    s = lobby(3)
    view = get_visible_clues(s["id"], HOST)
    assert view["current_round"] == 0
    assert view["items"] == []


def test_each_role_reads_its_own_stream(lobby):
    s = lobby(3)
    start_session(s["id"], HOST)
    murderer = murderer_of(s["id"])["user_id"]
    detective = next(r["user_id"] for r in player_rows(s["id"]) if r["user_id"] != murderer)

    assert _titles(get_visible_clues(s["id"], detective)) == ["Empty vial"]
    m = get_visible_clues(s["id"], murderer)
    assert m["role"] == "murderer"
    assert _titles(m) == ["Your alibi"]
    assert all(c["is_for_murderer"] for c in m["items"])

    advance_round(s["id"], HOST)
    assert _titles(get_visible_clues(s["id"], detective)) == ["Empty vial", "Torn letter"]
    assert _titles(get_visible_clues(s["id"], murderer)) == ["Your alibi", "Loose thread"]

    advance_round(s["id"], HOST)
    d = get_visible_clues(s["id"], detective)
    assert d["current_round"] == d["max_rounds"] == 3
    assert _titles(d) == ["Empty vial", "Torn letter", "Muddy footprints"]


def test_clues_members_only(lobby):
    s = lobby(3)
    with pytest.raises(Unauthorized):
        get_visible_clues(s["id"], "stranger")
