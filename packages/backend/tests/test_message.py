"""Message validation tests.

Learn: The three required fields must be present and non-null. Falsy but
non-null values (0, "", {}) are real data and must be accepted.
"""

import json

import pytest

from pushrelay.schemas.message import InvalidMessageError, RelayMessage, parse_message


def test_valid_message_parses():
    msg = parse_message({"event": "Ping", "payload": {"n": 1}, "timestamp": 1000})
    assert msg.event == "Ping"
    assert msg.payload == {"n": 1}
    assert msg.timestamp == 1000


@pytest.mark.parametrize("raw", [None, "Ping", 42, ["event", "payload"]])
def test_non_object_rejected(raw):
    with pytest.raises(InvalidMessageError) as exc:
        parse_message(raw)
    assert exc.value.reason == "not an object"


def test_missing_payload_rejected():
    with pytest.raises(InvalidMessageError) as exc:
        parse_message({"event": "X", "timestamp": 123})
    assert "payload" in exc.value.reason


def test_null_timestamp_rejected():
    with pytest.raises(InvalidMessageError) as exc:
        parse_message({"event": "X", "payload": {}, "timestamp": None})
    assert "timestamp" in exc.value.reason


def test_all_missing_fields_reported():
    with pytest.raises(InvalidMessageError) as exc:
        parse_message({})
    assert exc.value.reason == "missing required fields: event, payload, timestamp"


@pytest.mark.parametrize("event", ["", 7, {"name": "Ping"}])
def test_event_must_be_non_empty_string(event):
    with pytest.raises(InvalidMessageError):
        parse_message({"event": event, "payload": {}, "timestamp": 1})


@pytest.mark.parametrize("payload", [0, "", {}, [], False])
def test_falsy_payload_accepted(payload):
    msg = parse_message({"event": "X", "payload": payload, "timestamp": 0})
    assert msg.payload == payload
    assert msg.timestamp == 0


def test_wire_form_is_unchanged_input():
    raw = {
        "event": "Chat",
        "payload": {"text": "hi", "nested": [1, 2, {"a": None}]},
        "timestamp": 1700000000123,
        "sender": "bob",
    }
    assert parse_message(raw).to_wire() == raw


def test_timestamp_not_coerced():
    msg = parse_message({"event": "X", "payload": 1, "timestamp": "1000"})
    assert msg.timestamp == "1000"


def test_message_is_frozen():
    msg = parse_message({"event": "X", "payload": 1, "timestamp": 1})
    with pytest.raises(Exception):
        msg.event = "Y"


def test_push_data_is_all_strings():
    msg = RelayMessage(event="Ping", payload={"n": 1}, timestamp=1000)
    data = msg.to_push_data("alice")
    assert data == {
        "recipient": "alice",
        "event": "Ping",
        "payload": json.dumps({"n": 1}),
        "timestamp": "1000",
    }
    assert all(isinstance(v, str) for v in data.values())
