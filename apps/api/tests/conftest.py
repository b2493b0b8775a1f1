"""
Shared fixtures: every test gets its own SQLite file migrated to head.
"""
from __future__ import annotations

import copy
import random
import sqlite3
from contextlib import contextmanager

import pytest

from party_api.core.db import connect, run_migrations
from party_api.modules.players.service import join_session
from party_api.modules.sessions import rules
from party_api.modules.sessions.service import advance_round, create_session, start_session
from party_api.modules.stories.service import create_story

HOST = "host"

BLACKWOOD = {
    "title": "Murder at Blackwood Manor",
    "description": "Lord Blackwood is found dead in the library.",
    "setting": "A country manor, 1926",
    "min_players": 3,
    "max_players": 8,
    "total_rounds": 3,
    "characters": [
        {"name": "Lady Cordelia", "description": "The hostess", "outfit": "Evening gown", "background": "Widowed twice"},
        {"name": "Dr. Hartley", "description": "Family physician", "outfit": "Tweed suit", "background": "Struck off once"},
        {"name": "James", "description": "The butler", "outfit": "Tailcoat", "background": "Thirty years of service"},
        {"name": "Miss Winters", "description": "The governess", "outfit": "Grey dress", "background": "Came from London"},
        {"name": "Colonel Marsh", "description": "Old soldier", "outfit": "Regimentals", "background": "Gambling debts"},
        {"name": "Vera Lane", "description": "Actress", "outfit": "Fur stole", "background": "Ex-fiancee"},
        {"name": "Tom Pike", "description": "Gardener", "outfit": "Overalls", "background": "Knows every path"},
        {"name": "Rev. Ash", "description": "Local vicar", "outfit": "Cassock", "background": "Heard a confession"},
    ],
    "clues": [
        {"round_number": 1, "title": "Empty vial", "content": "Found in the study."},
        {"round_number": 1, "title": "Your alibi", "content": "Say you were in the garden.", "is_for_murderer": True},
        {"round_number": 2, "title": "Torn letter", "content": "Signed C.B."},
        {"round_number": 2, "title": "Loose thread", "content": "Your glove is missing.", "is_for_murderer": True},
        {"round_number": 3, "title": "Muddy footprints", "content": "From the garden to the study."},
    ],
}


@pytest.fixture()
def db(tmp_path, monkeypatch):
    url = f"sqlite:///{(tmp_path / 'party.db').as_posix()}"
    monkeypatch.setenv("DATABASE_URL", url)
    run_migrations(url)
    yield url


def make_story(**overrides):
    payload = copy.deepcopy(BLACKWOOD)
    payload.update(overrides)
    return create_story(payload)["story"]


@pytest.fixture()
def story(db):
    return make_story()


@pytest.fixture()
def lobby(story):
    """Factory: waiting session with `n` players (host included)."""

    def _make(n: int = 3, password=None, story_id=None):
        out = create_session(story_id or story["id"], HOST, password=password, rng=random.Random(0))
        session = out["session"]
        for i in range(1, n):
            join_session(session["session_code"], password, f"user-{i}", rng=random.Random(i))
        return session

    return _make


def drive_to_voting(session_id: str, seed: int = 0) -> None:
    start_session(session_id, HOST, rng=random.Random(seed))
    while True:
        s = advance_round(session_id, HOST)
        if s["status"] == rules.VOTING:
            return


def player_rows(session_id: str):
    conn = connect()
    try:
        return conn.execute(
            "SELECT * FROM game_players WHERE session_id=? ORDER BY joined_at, rowid;", (session_id,)
        ).fetchall()
    finally:
        conn.close()


@contextmanager
def raw_conn():
    """Direct store access, bypassing the services, to exercise the triggers."""
    conn = connect()
    try:
        yield conn
    finally:
        conn.rollback()
        conn.close()


def murderer_of(session_id: str) -> sqlite3.Row:
    rows = [r for r in player_rows(session_id) if r["role"] == "murderer"]
    assert len(rows) == 1
    return rows[0]
