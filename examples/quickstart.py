#!/usr/bin/env python3
"""
pushrelay Quickstart — register a push token and inspect queues.

Checks health → registers a token → reads it back → shows queue sizes
→ drains one identity.
Run with: python examples/quickstart.py [identity]

Requires: pip install httpx
Relay must be running: pushrelay serve (http://localhost:3000)
"""

import sys
import uuid

import httpx

BASE = "http://localhost:3000/api/v1"


def main():
    identity = sys.argv[1] if len(sys.argv) > 1 else f"demo-{uuid.uuid4().hex[:6]}"
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking relay health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Relay not reachable at {BASE}")
        sys.exit(1)
    health = resp.json()
    print(f"  Status:   {health['status']}")
    print(f"  Database: {health['database']}")
    print(f"  Redis:    {health['redis']}")
    print(f"  Firebase: {'✓' if health['firebase'] else '✗'}")

    # ── Register a token ──────────────────────────────────────────
    print(f"\n1. Registering a push token for {identity}...")
    resp = client.post("/tokens", json={
        "userId": identity,
        "deviceId": "quickstart-device",
        "fcmToken": f"fake-fcm-token-{uuid.uuid4().hex}",
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Stored for device {resp.json()['deviceId']}")

    # ── Read it back ──────────────────────────────────────────────
    print("\n2. Reading the token back...")
    resp = client.get(f"/tokens/{identity}")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Token: {resp.json()['fcmToken'][:24]}...")

    # A missing field is a 400 with the {success, error} body
    resp = client.post("/tokens", json={"userId": identity})
    print(f"   Incomplete registration → {resp.status_code}: {resp.json()['error']}")

    # ── Queues ────────────────────────────────────────────────────
    print("\n3. Queue sizes across the relay...")
    stats = client.get("/queues").json()
    print(f"   {stats['identities']} identities, {stats['total_messages']} pending")

    print(f"\n4. Draining {identity}...")
    drained = client.post(f"/queues/{identity}/drain").json()
    print(f"   {drained['count']} message(s)")
    for message in drained["messages"]:
        print(f"   - {message['event']} @ {message['timestamp']}")

    print("\nDone. Send live messages over ws://localhost:3000/ws with")
    print('  {"type": "send", "to": "<identity>", "message": {"event", "payload", "timestamp"}}')


if __name__ == "__main__":
    main()
