import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

import roomie.main as m
from roomie import deps
from roomie.services import rate_limit
from roomie.services.store import InMemoryMatchStore

PREFS = {"cleanliness": 50, "noiseLevel": 50, "guests": 50, "sleepSchedule": 50, "budget": 50, "leaseLength": 50}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(m, "wait_for_db", lambda *args, **kwargs: None)
    monkeypatch.setattr(m, "init_schema", lambda *args, **kwargs: None)
    store = InMemoryMatchStore()
    m.app.dependency_overrides[deps.get_store] = lambda: store
    rate_limit.limiter.reset()
    yield TestClient(m.app)
    m.app.dependency_overrides.clear()
    rate_limit.limiter.reset()


def _as(user_id):
    return {"X-Actor-User-Id": user_id}


def _put_profile(client, user_id, **overrides):
    payload = {"display_name": user_id.title(), "preferences": PREFS, **overrides}
    res = client.put("/profiles/me", json=payload, headers=_as(user_id))
    assert res.status_code == 200
    return res.json()["profile"]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_actor_header_required(client):
    res = client.post("/likes", json={"liked_id": "bob"})
    assert res.status_code == 400


def test_like_match_and_message_flow(client):
    _put_profile(client, "alice")
    _put_profile(client, "bob")

    res = client.post("/likes", json={"liked_id": "bob"}, headers=_as("alice"))
    assert res.json() == {"is_match": False}

    res = client.get("/messages/can-send/bob", headers=_as("alice"))
    assert res.json()["allowed"] is False
    assert res.json()["reason"] == "not_matched"

    res = client.post("/likes", json={"liked_id": "alice"}, headers=_as("bob"))
    assert res.json() == {"is_match": True}

    matches = client.get("/matches", headers=_as("alice")).json()["matches"]
    assert [mm["user_id"] for mm in matches] == ["bob"]

    res = client.get("/messages/can-send/bob", headers=_as("alice"))
    assert res.json()["allowed"] is True
    assert res.json()["remaining_direct_messages"] is None

    res = client.post("/messages", json={"recipient_id": "bob", "body": "hey roomie"}, headers=_as("alice"))
    assert res.status_code == 201
    assert res.json()["message"]["room_id"] == "alice_bob"
    assert res.json()["counted_direct_message"] is False

    conversations = client.get("/conversations", headers=_as("bob")).json()
    assert [c["user_id"] for c in conversations["matches"]] == ["alice"]


def test_free_tier_limit_is_distinguishable(client):
    _put_profile(client, "sender")
    _put_profile(client, "open1", open_to_non_matches=True)
    _put_profile(client, "open2", open_to_non_matches=True)

    res = client.post("/messages", json={"recipient_id": "open1", "body": "hi"}, headers=_as("sender"))
    assert res.status_code == 201
    assert res.json()["counted_direct_message"] is True

    res = client.post("/messages", json={"recipient_id": "open2", "body": "hi again"}, headers=_as("sender"))
    assert res.status_code == 403
    assert res.json()["reason"] == "free_tier_limit_reached"

    res = client.get("/messages/can-send/open2", headers=_as("sender"))
    assert res.json()["remaining_direct_messages"] == 0


def test_self_like_rejected(client):
    res = client.post("/likes", json={"liked_id": "alice"}, headers=_as("alice"))
    assert res.status_code == 400


def test_candidates_skip_seen_and_blocked(client):
    _put_profile(client, "viewer")
    _put_profile(client, "liked")
    _put_profile(client, "passed")
    _put_profile(client, "blocked")
    _put_profile(client, "fresh", preferences={**PREFS, "budget": 70})

    client.post("/likes", json={"liked_id": "liked"}, headers=_as("viewer"))
    client.post("/passes", json={"passed_id": "passed"}, headers=_as("viewer"))
    client.post("/blocks", json={"blocked_id": "blocked"}, headers=_as("viewer"))

    candidates = client.get("/candidates", headers=_as("viewer")).json()["candidates"]
    assert [(c["profile"]["id"], c["compatibility"]) for c in candidates] == [("fresh", 93)]


def test_compatibility_endpoint(client):
    _put_profile(client, "a", gender="female", gender_preference=["female"])
    _put_profile(client, "b", gender="male", gender_preference=["any"])
    res = client.get("/compatibility/b", headers=_as("a"))
    assert res.json()["compatibility"] == 0
    assert res.json()["breakdown"]["reason"] == "gender_dealbreaker"


def test_unknown_profile_404(client):
    assert client.get("/profiles/nobody", headers=_as("a")).status_code == 404


def test_slider_out_of_range_rejected(client):
    res = client.put("/profiles/me", json={"preferences": {"budget": 140}}, headers=_as("a"))
    assert res.status_code == 422


def test_like_rate_limited(client, monkeypatch):
    monkeypatch.setattr(rate_limit, "limiter", rate_limit.SlidingWindowLimiter())
    for i in range(120):
        assert client.post("/likes", json={"liked_id": f"u{i}"}, headers=_as("spammer")).status_code == 200
    res = client.post("/likes", json={"liked_id": "one-more"}, headers=_as("spammer"))
    assert res.status_code == 429
    assert "Retry-After" in res.headers


def test_profile_update_cannot_raise_subscription_tier(client):
    _put_profile(client, "x")
    _put_profile(client, "y", open_to_non_matches=True)
    _put_profile(client, "z", open_to_non_matches=True)
    assert client.post("/messages", json={"recipient_id": "y", "body": "hi"}, headers=_as("x")).status_code == 201
    assert client.post("/messages", json={"recipient_id": "z", "body": "hi"}, headers=_as("x")).status_code == 403

    profile = _put_profile(client, "x", subscription_tier="premium")
    assert profile["subscription_tier"] == "free"
    assert profile["direct_messages_sent"] == 1

    res = client.post("/messages", json={"recipient_id": "z", "body": "hi"}, headers=_as("x"))
    assert res.status_code == 403
    assert res.json()["reason"] == "free_tier_limit_reached"


def test_underscore_ids_keep_rooms_apart(client):
    for uid in ("a", "b_c", "a_b", "c"):
        _put_profile(client, uid, open_to_non_matches=True)
    client.post("/likes", json={"liked_id": "c"}, headers=_as("a_b"))
    client.post("/likes", json={"liked_id": "a_b"}, headers=_as("c"))

    res = client.get("/messages/can-send/b_c", headers=_as("a"))
    assert res.json()["reason"] == "recipient_open"

    client.post("/messages", json={"recipient_id": "c", "body": "secret between a_b and c"}, headers=_as("a_b"))
    conversations = client.get("/conversations", headers=_as("a")).json()
    assert conversations == {"matches": [], "direct_messages": []}


def test_report_user(client):
    _put_profile(client, "reporter")
    _put_profile(client, "troll")

    res = client.post(
        "/reports",
        json={"reported_id": "troll", "details": "  spam links ", "context": "message"},
        headers=_as("reporter"),
    )
    assert res.status_code == 201
    assert res.json()["status"] == "reported"

    store = m.app.dependency_overrides[deps.get_store]()
    [report] = store.get_reports("troll")
    assert report.reporter_id == "reporter"
    assert report.reason == "No reason provided"
    assert report.details == "spam links"
    assert report.context == "message"


@pytest.mark.parametrize(
    "payload,status",
    [
        ({"reported_id": "  "}, 400),
        ({"reported_id": "reporter"}, 400),
        ({"reported_id": "troll", "context": "profile"}, 400),
        ({"reported_id": "ghost"}, 404),
    ],
)
def test_report_validation(client, payload, status):
    _put_profile(client, "reporter")
    _put_profile(client, "troll")
    res = client.post("/reports", json=payload, headers=_as("reporter"))
    assert res.status_code == status
