"""HTTP API tests: tokens, queues, health."""

import pytest


def _ping(n: int = 1) -> dict:
    return {"event": "Ping", "payload": {"n": n}, "timestamp": 1000 + n}


# ═══════════════════════════════════════════════════════════
# Tokens
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_set_and_get_token(client):
    r = await client.post(
        "/api/v1/tokens",
        json={"userId": "alice", "deviceId": "pixel-7", "fcmToken": "tok-a"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["userId"] == "alice"
    assert body["fcmToken"] == "tok-a"

    r = await client.get("/api/v1/tokens/alice")
    assert r.status_code == 200
    body = r.json()
    assert body["deviceId"] == "pixel-7"
    assert body["fcmToken"] == "tok-a"
    assert body["updatedAt"] > 0


@pytest.mark.asyncio
async def test_set_token_missing_fields(client):
    r = await client.post("/api/v1/tokens", json={"userId": "alice"})
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "Missing required fields: deviceId, fcmToken"


@pytest.mark.asyncio
async def test_set_token_empty_field(client):
    r = await client.post(
        "/api/v1/tokens",
        json={"userId": "alice", "deviceId": "", "fcmToken": "tok"},
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_get_unknown_token(client):
    r = await client.get("/api/v1/tokens/nobody")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Token not found for user"}


@pytest.mark.asyncio
async def test_token_overwrite_via_api(client):
    for token in ("tok-1", "tok-2"):
        r = await client.post(
            "/api/v1/tokens",
            json={"userId": "carol", "deviceId": "phone", "fcmToken": token},
        )
        assert r.status_code == 200

    r = await client.get("/api/v1/tokens/carol")
    assert r.json()["fcmToken"] == "tok-2"


# ═══════════════════════════════════════════════════════════
# Queues
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_peek_and_drain_queue(client, relay):
    await relay.router.handle_inbound("alice", _ping(1))
    await relay.router.handle_inbound("alice", _ping(2))

    r = await client.get("/api/v1/queues/alice")
    assert r.status_code == 200
    assert r.json() == {"identity": "alice", "count": 2, "messages": [_ping(1), _ping(2)]}

    # Peeking twice changes nothing
    r = await client.get("/api/v1/queues/alice")
    assert r.json()["count"] == 2

    r = await client.post("/api/v1/queues/alice/drain")
    assert r.json() == {"identity": "alice", "count": 2, "messages": [_ping(1), _ping(2)]}

    r = await client.post("/api/v1/queues/alice/drain")
    assert r.json() == {"identity": "alice", "count": 0, "messages": []}


@pytest.mark.asyncio
async def test_queue_stats(client, relay):
    await relay.router.handle_inbound("alice", _ping(1))
    await relay.router.handle_inbound("bob", _ping(2))
    await relay.router.handle_inbound("bob", _ping(3))

    r = await client.get("/api/v1/queues")
    body = r.json()
    assert body["identities"] == 2
    assert body["total_messages"] == 3
    assert body["queues"] == {"alice": 1, "bob": 2}


# ═══════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_health_reports_dependencies(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    data = r.json()
    assert data["server"] == "ok"
    assert data["database"] == "ok"
    assert data["firebase"] is True
    assert data["status"] == "healthy"
    assert "version" in data
    assert data["redis"] in ("unavailable", "disabled")


@pytest.mark.asyncio
async def test_health_degraded_without_push(client, relay):
    relay.push.transport = None
    r = await client.get("/api/v1/health")
    data = r.json()
    assert data["firebase"] is False
    assert data["status"] == "degraded"

