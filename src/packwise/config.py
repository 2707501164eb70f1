"""Application configuration helpers."""

from __future__ import annotations

import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ENV_FILE_CANDIDATES = (Path(".env"), Path(".env.local"))

PLACEHOLDER_API_KEY = "your-groq-api-key"
MIN_DEBOUNCE_SECONDS = 0.5


class AIMode(str, Enum):
    """Where item suggestions and event drafts may come from."""

    LOCAL_ONLY = "local"
    CLOUD_ENABLED = "cloud"


class Settings(BaseModel):
    """Global application settings loaded from environment variables or .env files."""

    database_path: Path = Field(
        default=Path("./data/packwise.db"),
        description="SQLite database holding the persisted collections.",
    )
    api_token: Optional[str] = Field(
        default=None,
        description="Bearer token required for mutating endpoints.",
    )
    log_level: str = Field(default="INFO", description="Logging level (DEBUG/INFO/WARNING/ERROR)")
    log_format: str = Field(
        default="plain",
        description="Logging format (plain/json).",
    )
    log_requests: bool = Field(
        default=True,
        description="Emit request access logs when true.",
    )
    ai_mode: AIMode = Field(
        default=AIMode.LOCAL_ONLY,
        description="local keeps everything on-device; cloud allows text-generation calls.",
    )
    llm_api_key: Optional[str] = Field(
        default=None,
        description="Bearer credential for the text-generation endpoint.",
    )
    llm_api_key_prefix: str = Field(
        default="gsk_",
        description="Prefix a credential must carry to count as valid (empty disables the check).",
    )
    llm_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="OpenAI-compatible base URL (or Ollama base URL).",
    )
    llm_model: str = Field(
        default="llama-3.1-8b-instant",
        description="Model identifier passed to the text-generation endpoint.",
    )
    llm_provider: str = Field(
        default="openai",
        description="Text-generation provider (openai or ollama).",
    )
    suggestion_timeout: float = Field(
        default=15.0,
        description="Seconds before an item suggestion request is abandoned.",
    )
    speech_timeout: float = Field(
        default=10.0,
        description="Seconds before a cloud event-parsing request falls back to local parsing.",
    )
    suggestion_debounce: float = Field(
        default=MIN_DEBOUNCE_SECONDS,
        ge=MIN_DEBOUNCE_SECONDS,
        description="Settle time after the last title keystroke before asking the cloud.",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def has_valid_credential(self) -> bool:
        key = (self.llm_api_key or "").strip()
        if not key or key == PLACEHOLDER_API_KEY:
            return False
        return key.startswith(self.llm_api_key_prefix)

    @property
    def cloud_enabled(self) -> bool:
        """True when the user opted into cloud calls and holds a usable credential."""

        return self.ai_mode == AIMode.CLOUD_ENABLED and self.has_valid_credential


def _coerce_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_env_file(path: Path) -> dict[str, str]:
    payload: dict[str, str] = {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, raw_value = line.split("=", 1)
                payload[key.strip()] = raw_value.strip()
    except FileNotFoundError:
        return {}
    return payload


def _load_env_file_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for candidate in ENV_FILE_CANDIDATES:
        values.update(_parse_env_file(candidate))
    return values


def _load_from_env() -> dict[str, object]:
    """Load optional overrides from env vars (with .env fallbacks)."""

    file_values = _load_env_file_values()

    def _env(key: str) -> Optional[str]:
        return os.environ.get(key) or file_values.get(key)

    payload: dict[str, object] = {}
    if (db_path := _env("PACKWISE_DATABASE_PATH")):
        payload["database_path"] = Path(db_path)
    if (api_token := _env("PACKWISE_API_TOKEN")):
        payload["api_token"] = api_token
    if (log_level := _env("PACKWISE_LOG_LEVEL")):
        payload["log_level"] = log_level
    if (log_format := _env("PACKWISE_LOG_FORMAT")):
        payload["log_format"] = log_format
    if (log_requests := _env("PACKWISE_LOG_REQUESTS")):
        payload["log_requests"] = _coerce_bool(log_requests)
    if (ai_mode := _env("PACKWISE_AI_MODE")):
        try:
            payload["ai_mode"] = AIMode(ai_mode.strip().lower())
        except ValueError:
            pass
    if (api_key := _env("PACKWISE_LLM_API_KEY") or _env("GROQ_API_KEY")):
        payload["llm_api_key"] = api_key
    key_prefix = _env("PACKWISE_LLM_API_KEY_PREFIX")
    if key_prefix is not None:
        payload["llm_api_key_prefix"] = key_prefix
    if (base_url := _env("PACKWISE_LLM_BASE_URL")):
        payload["llm_base_url"] = base_url
    if (model := _env("PACKWISE_LLM_MODEL")):
        payload["llm_model"] = model
    if (provider := _env("PACKWISE_LLM_PROVIDER")):
        payload["llm_provider"] = provider
    if (suggestion_timeout := _env("PACKWISE_SUGGESTION_TIMEOUT")):
        try:
            payload["suggestion_timeout"] = float(suggestion_timeout)
        except ValueError:
            pass
    if (speech_timeout := _env("PACKWISE_SPEECH_TIMEOUT")):
        try:
            payload["speech_timeout"] = float(speech_timeout)
        except ValueError:
            pass
    if (debounce := _env("PACKWISE_SUGGESTION_DEBOUNCE")):
        try:
            payload["suggestion_debounce"] = max(MIN_DEBOUNCE_SECONDS, float(debounce))
        except ValueError:
            pass
    return payload


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(**_load_from_env())


def reset_settings() -> None:
    """Drop the cached settings so the next call reloads them from the environment."""

    get_settings.cache_clear()
