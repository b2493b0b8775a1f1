import copy

import pytest
from conftest import BLACKWOOD
from fastapi.testclient import TestClient

from party_api.main import app


@pytest.fixture()
def client(db):
    with TestClient(app) as c:
        yield c


def _as(user):
    return {"X-User-Id": user}


def _seed(client, **overrides):
    payload = copy.deepcopy(BLACKWOOD)
    payload.update(overrides)
    r = client.post("/stories", json=payload)
    assert r.status_code == 200, r.text
    return r.json()["story"]


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["db"]["status"] == "ok"
    assert body["db"]["kind"] == "sqlite"
    assert "version" in body
    assert "X-Request-Id" in r.headers


def test_request_id_is_echoed(client):
    r = client.get("/health", headers={"X-Request-Id": "REQ-123"})
    assert r.headers["X-Request-Id"] == "REQ-123"


def test_story_catalog(client):
    story = _seed(client)
    listed = client.get("/stories").json()["items"]
    assert [s["id"] for s in listed] == [story["id"]]

    detail = client.get(f"/stories/{story['id']}").json()
    assert len(detail["characters"]) == 8
    assert detail["clues_count"] == 5

    assert client.get("/stories/nope").status_code == 404


def test_story_validation(client):
    r = client.post("/stories", json={**BLACKWOOD, "min_players": 5, "max_players": 4})
    assert r.status_code == 422
    assert r.json()["error"] == "validation_failure"

    r = client.post("/stories", json={**BLACKWOOD, "total_rounds": 1})
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"


def test_identity_required(client):
    story = _seed(client)
    r = client.post("/sessions", json={"story_id": story["id"]})
    assert r.status_code == 403
    body = r.json()
    assert body["error"] == "unauthorized"
    assert body["request_id"]
    assert set(body) == {"error", "message", "request_id", "details"}


def test_full_game_over_http(client):
    story = _seed(client)

    created = client.post("/sessions", json={"story_id": story["id"], "password": "pw"}, headers=_as("host"))
    assert created.status_code == 200, created.text
    session = created.json()["session"]
    sid, code = session["id"], session["session_code"]
    assert session["has_password"] is True
    assert "password" not in session

    r = client.post("/sessions/join", json={"session_code": code, "password": "nope"}, headers=_as("ann"))
    assert r.status_code == 409
    assert r.json()["error"] == "conflict"

    for user in ("ann", "ben"):
        r = client.post("/sessions/join", json={"session_code": code.lower(), "password": "pw"}, headers=_as(user))
        assert r.status_code == 200, r.text
        assert r.json()["reused"] is False

    again = client.post("/sessions/join", json={"session_code": code, "password": "pw"}, headers=_as("ann"))
    assert again.json()["reused"] is True

    assert client.post(f"/sessions/{sid}/start", headers=_as("ann")).status_code == 403
    started = client.post(f"/sessions/{sid}/start", headers=_as("host"))
    assert started.status_code == 200
    assert started.json()["status"] == "in_progress"
    assert started.json()["current_round"] == 1

    players = client.get(f"/sessions/{sid}/players", headers=_as("ann")).json()["items"]
    assert len(players) == 3
    assert [p["role"] is not None for p in players] == [p["user_id"] == "ann" for p in players]

    clues = client.get(f"/sessions/{sid}/clues", headers=_as("ben")).json()
    assert clues["current_round"] == 1
    assert len(clues["items"]) == 1

    assert client.post(f"/sessions/{sid}/votes", json={"accused_id": "ann"}, headers=_as("ben")).status_code == 409

    assert client.post(f"/sessions/{sid}/rounds/advance", headers=_as("host")).json()["status"] == "in_progress"
    voting = client.post(f"/sessions/{sid}/rounds/advance", headers=_as("host")).json()
    assert (voting["status"], voting["current_round"]) == ("voting", 3)
    assert client.post(f"/sessions/{sid}/rounds/advance", headers=_as("host")).status_code == 409

    assert client.get(f"/sessions/{sid}/results", headers=_as("host")).status_code == 409

    for voter, accused in (("host", "ann"), ("ann", "ben"), ("ben", "ann")):
        r = client.post(f"/sessions/{sid}/votes", json={"accused_id": accused}, headers=_as(voter))
        assert r.status_code == 200, r.text
    dup = client.post(f"/sessions/{sid}/votes", json={"accused_id": "host"}, headers=_as("ben"))
    assert dup.status_code == 403

    tally = client.get(f"/sessions/{sid}/votes/tally", headers=_as("ben")).json()
    assert tally["total_votes"] == 3
    assert tally["my_vote"] == "ann"
    assert tally["items"][0]["player"]["user_id"] == "ann"
    assert tally["items"][0]["player"]["role"] is None

    assert client.post(f"/sessions/{sid}/voting/end", headers=_as("ben")).status_code == 403
    done = client.post(f"/sessions/{sid}/voting/end", headers=_as("host"))
    assert done.json()["status"] == "completed"

    results = client.get(f"/sessions/{sid}/results", headers=_as("ben")).json()
    assert results["most_voted"]["user_id"] == "ann"
    expected = "detectives" if results["murderer"]["user_id"] == "ann" else "murderer"
    assert results["winner"] == expected
    assert all(i["player"]["role"] for i in results["items"])

    revealed = client.get(f"/sessions/{sid}/players", headers=_as("ann")).json()["items"]
    assert all(p["role"] for p in revealed)


def test_active_session_and_leave(client):
    story = _seed(client)
    sid = client.post("/sessions", json={"story_id": story["id"]}, headers=_as("host")).json()["session"]["id"]
    code = client.get(f"/sessions/{sid}", headers=_as("host")).json()["session_code"]
    client.post("/sessions/join", json={"session_code": code}, headers=_as("ann"))

    mine = client.get("/me/session", headers=_as("ann"))
    assert mine.status_code == 200
    assert mine.json()["session"]["id"] == sid

    left = client.delete(f"/sessions/{sid}/players/me", headers=_as("ann"))
    assert left.status_code == 200
    assert left.json()["status"] == "left"

    assert client.get("/me/session", headers=_as("ann")).status_code == 404
    assert client.delete(f"/sessions/{sid}/players/me", headers=_as("ann")).status_code == 404


def test_change_feed_over_http(client):
    story = _seed(client)
    sid = client.post("/sessions", json={"story_id": story["id"]}, headers=_as("host")).json()["session"]["id"]
    feed = client.get(f"/sessions/{sid}/changes", headers=_as("host")).json()
    assert [c["entity"] for c in feed["items"]] == ["game_sessions", "game_players"]

    code = client.get(f"/sessions/{sid}", headers=_as("host")).json()["session_code"]
    client.post("/sessions/join", json={"session_code": code}, headers=_as("ann"))

    newer = client.get(f"/sessions/{sid}/changes", params={"after": feed["last_seq"]}, headers=_as("host")).json()
    assert [(c["entity"], c["op"], c["actor_id"]) for c in newer["items"]] == [("game_players", "insert", "ann")]

    assert client.get("/sessions/nope/changes", headers=_as("host")).status_code == 404


def test_session_reads_need_membership(client):
    story = _seed(client)
    sid = client.post("/sessions", json={"story_id": story["id"]}, headers=_as("host")).json()["session"]["id"]

    for path in (f"/sessions/{sid}", f"/sessions/{sid}/changes"):
        assert client.get(path).status_code == 403
        r = client.get(path, headers=_as("stranger"))
        assert r.status_code == 403
        assert r.json()["error"] == "unauthorized"
        assert client.get(path, headers=_as("host")).status_code == 200
