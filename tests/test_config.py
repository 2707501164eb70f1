"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from packwise.config import AIMode, Settings, get_settings, reset_settings


def test_defaults_keep_everything_local(tmp_path):
    settings = get_settings()

    assert settings.ai_mode is AIMode.LOCAL_ONLY
    assert not settings.cloud_enabled
    assert settings.database_path == tmp_path / "test_packwise.db"
    assert settings.suggestion_debounce == 0.5
    assert settings.speech_timeout == 10.0


@pytest.mark.parametrize(
    ("key", "valid"),
    [
        (None, False),
        ("", False),
        ("your-groq-api-key", False),
        ("sk-not-groq", False),
        ("gsk_testkey1234567890", True),
    ],
)
def test_credential_validity(key, valid):
    settings = Settings(ai_mode=AIMode.CLOUD_ENABLED, llm_api_key=key)
    assert settings.has_valid_credential is valid
    assert settings.cloud_enabled is valid


def test_empty_prefix_accepts_any_key():
    assert Settings(llm_api_key="ollama", llm_api_key_prefix="").has_valid_credential


def test_cloud_mode_from_environment(monkeypatch):
    monkeypatch.setenv("PACKWISE_AI_MODE", " Cloud ")
    monkeypatch.setenv("GROQ_API_KEY", "gsk_fromgroqenv123")
    reset_settings()

    settings = get_settings()

    assert settings.ai_mode is AIMode.CLOUD_ENABLED
    assert settings.llm_api_key == "gsk_fromgroqenv123"
    assert settings.cloud_enabled


def test_packwise_key_takes_precedence_over_groq_key(monkeypatch):
    monkeypatch.setenv("PACKWISE_LLM_API_KEY", "gsk_primarykey1234")
    monkeypatch.setenv("GROQ_API_KEY", "gsk_fromgroqenv123")
    reset_settings()

    assert get_settings().llm_api_key == "gsk_primarykey1234"


def test_invalid_values_are_ignored_or_clamped(monkeypatch):
    monkeypatch.setenv("PACKWISE_AI_MODE", "sometimes")
    monkeypatch.setenv("PACKWISE_SPEECH_TIMEOUT", "soon")
    monkeypatch.setenv("PACKWISE_SUGGESTION_DEBOUNCE", "0.1")
    monkeypatch.setenv("PACKWISE_LOG_REQUESTS", "off")
    reset_settings()

    settings = get_settings()

    assert settings.ai_mode is AIMode.LOCAL_ONLY
    assert settings.speech_timeout == 10.0
    assert settings.suggestion_debounce == 0.5
    assert settings.log_requests is False


def test_env_file_is_read_from_working_directory(tmp_path, monkeypatch):
    monkeypatch.delenv("PACKWISE_DATABASE_PATH")
    (tmp_path / ".env").write_text(
        "# local overrides\nPACKWISE_DATABASE_PATH=from-env-file.db\nPACKWISE_API_TOKEN=abc\n",
        encoding="utf-8",
    )
    reset_settings()

    settings = get_settings()

    assert settings.database_path == Path("from-env-file.db")
    assert settings.api_token == "abc"


def test_settings_are_frozen_and_cached():
    settings = get_settings()
    assert get_settings() is settings
    with pytest.raises(ValidationError):
        settings.api_token = "changed"
    with pytest.raises(ValidationError):
        Settings(suggestion_debounce=0.2)
