"""Tests for the events endpoint -- signed Users service deliveries."""

import json

from app_engine.api.rate_limit import RateLimiter
from app_engine.webhooks import sign_payload
from tests.conftest import PREFIX, auth_header, create_project

_SECRET = "whsec_test"


def _send(client, event: dict, secret: str = _SECRET):
    body = json.dumps(event).encode()
    return client.post(
        f"{PREFIX}/events",
        content=body,
        headers={"Content-Type": "application/json", "X-Users-Signature": sign_payload(body, secret)},
    )


def test_missing_signature_rejected(client):
    resp = client.post(f"{PREFIX}/events", json={"type": "Activated", "username": "newbie"})
    assert resp.status_code == 401
    assert resp.json() == {"error": True, "message": "Invalid event signature"}


def test_wrong_secret_rejected(client, fake_db):
    resp = _send(client, {"type": "Activated", "username": "newbie"}, secret="guess")
    assert resp.status_code == 401
    assert not any(r["username"] == "newbie" for r in fake_db.rows("user_details"))


def test_activated_creates_details(client, fake_db):
    for _ in range(2):
        resp = _send(client, {"type": "Activated", "username": "newbie"})
        assert resp.status_code == 200
        assert resp.json() == {"error": False, "message": "Event 'Activated' processed"}
    assert len([r for r in fake_db.rows("user_details") if r["username"] == "newbie"]) == 1


def test_removed_cascades(client, fake_db):
    project = create_project(client)
    client.post(
        f"{PREFIX}/users/george/projects/{project['_id']}/assets",
        json={"name": "Box", "className": "Asset"},
        headers=auth_header(),
    )

    resp = _send(client, {"type": "Removed", "username": "george"})

    assert resp.json()["error"] is False
    assert fake_db.rows("projects") == []
    assert fake_db.rows("builds") == []
    assert fake_db.rows("assets") == []
    assert not any(r["username"] == "george" for r in fake_db.rows("user_details"))


def test_unknown_event_ignored(client):
    resp = _send(client, {"type": "Login", "username": "george"})
    assert resp.json() == {"error": False, "message": "Event ignored"}


def test_malformed_event(client):
    resp = _send(client, {"type": "Activated"})
    assert resp.status_code == 200
    assert resp.json() == {"error": True, "message": "Event is missing a username"}


def test_invalid_json(client):
    body = b"{not json"
    resp = client.post(
        f"{PREFIX}/events", content=body, headers={"X-Users-Signature": sign_payload(body, _SECRET)},
    )
    assert resp.json() == {"error": True, "message": "Event body is not valid JSON"}


def test_rate_limited(client, monkeypatch):
    monkeypatch.setattr("app_engine.api.routers.events.event_limiter", RateLimiter(max_requests=1))
    assert _send(client, {"type": "Login", "username": "george"}).status_code == 200
    resp = _send(client, {"type": "Login", "username": "george"})
    assert resp.status_code == 429
    assert resp.json()["message"] == "Rate limit exceeded"
    assert int(resp.headers["Retry-After"]) >= 1
