"""Credential directory tests — one record per user, latest write wins."""

import pytest

from pushrelay.credentials import CredentialDirectory


@pytest.mark.asyncio
async def test_lookup_unknown_user(session_factory):
    directory = CredentialDirectory(session_factory)
    assert await directory.lookup("nobody") is None
    assert await directory.get("nobody") is None


@pytest.mark.asyncio
async def test_put_then_lookup(session_factory):
    directory = CredentialDirectory(session_factory)
    record = await directory.put("alice", "pixel-7", "tok-a")

    assert record.user_id == "alice"
    assert record.device_id == "pixel-7"
    assert record.updated_at > 0
    assert await directory.lookup("alice") == "tok-a"


@pytest.mark.asyncio
async def test_put_overwrites_whole_record(session_factory):
    directory = CredentialDirectory(session_factory)
    first = await directory.put("carol", "old-phone", "tok-1")
    second = await directory.put("carol", "new-phone", "tok-2")

    record = await directory.get("carol")
    assert record.device_id == "new-phone"
    assert record.fcm_token == "tok-2"
    assert second.updated_at >= first.updated_at


@pytest.mark.asyncio
async def test_user_ids_are_not_normalised(session_factory):
    directory = CredentialDirectory(session_factory)
    await directory.put("Dave", "d1", "tok-upper")

    assert await directory.lookup("dave") is None
    assert await directory.lookup("Dave") == "tok-upper"


@pytest.mark.asyncio
async def test_ping(session_factory):
    await CredentialDirectory(session_factory).ping()
