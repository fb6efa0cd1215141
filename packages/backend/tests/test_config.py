"""Settings tests: env vars, .env files and rejected values."""

import pytest
from pydantic import ValidationError

from pushrelay.config import Settings


def test_reads_dotenv_from_working_directory(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("RELAY_PORT=4100\nRELAY_QUEUE_MAX_MESSAGES=50\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RELAY_PORT", raising=False)
    monkeypatch.delenv("RELAY_QUEUE_MAX_MESSAGES", raising=False)

    s = Settings()

    assert s.port == 4100
    assert s.queue_max_messages == 50


def test_env_var_beats_dotenv(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("RELAY_PORT=4100\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RELAY_PORT", "4200")

    assert Settings().port == 4200


def test_unrelated_dotenv_keys_are_ignored(tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("SOMETHING_ELSE=1\n")
    monkeypatch.chdir(tmp_path)

    Settings()


def test_negative_queue_bound_rejected(monkeypatch):
    monkeypatch.setenv("RELAY_QUEUE_MAX_MESSAGES", "-1")
    with pytest.raises(ValidationError):
        Settings()
