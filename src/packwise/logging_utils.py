"""Logging setup that keeps API tokens and model credentials out of log output."""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Pattern, Tuple

REDACTED = "[redacted]"

# Fields copied from ``extra=`` into JSON log lines when present.
STRUCTURED_FIELDS = ("request_id", "event_id", "list_id", "source", "stage")

NOISY_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx", "httpcore")

_CREDENTIAL_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/=]+", re.IGNORECASE), r"\1" + REDACTED),
    (re.compile(r"((?:api_token|api_key)=)[^&\s]+", re.IGNORECASE), r"\1" + REDACTED),
    (re.compile(r"(X-API-Key[=:]\s*)[^&\s]+", re.IGNORECASE), r"\1" + REDACTED),
    (re.compile(r"\bgsk_[A-Za-z0-9]{8,}\b"), REDACTED),
)


class Redactor:
    """Replace credential-looking substrings and explicitly configured secrets."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        cleaned = {secret.strip() for secret in secrets if secret and secret.strip()}
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted(cleaned, key=len, reverse=True)

    def __call__(self, text: str) -> str:
        for pattern, replacement in _CREDENTIAL_PATTERNS:
            text = pattern.sub(replacement, text)
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text


class SensitiveDataFilter(logging.Filter):
    """Redact the rendered message and any string attributes of a record."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        self._redact = Redactor(secrets)

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - standard interface
        message = record.getMessage()
        redacted = self._redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()

        for key, value in list(vars(record).items()):
            if key != "msg" and isinstance(value, str):
                setattr(record, key, self._redact(value))
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, carrying request ids and entity ids when logged."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = str(value)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def _build_formatter(fmt: str) -> logging.Formatter:
    if (fmt or "plain").lower() == "json":
        return JsonFormatter()
    return logging.Formatter(
        "%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def configure_logging(level_name: str, fmt: str, secrets: Iterable[str]) -> None:
    """Install a single redacting stream handler on the root logger.

    Server and HTTP-client loggers are routed through the root handler so their lines
    are redacted too.
    """

    level = getattr(logging, level_name.upper(), logging.INFO)
    redaction = SensitiveDataFilter(secrets)

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(fmt))
    handler.addFilter(redaction)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
    logging.captureWarnings(True)

    for name in NOISY_LOGGERS:
        third_party = logging.getLogger(name)
        third_party.handlers = []
        third_party.setLevel(level)
        third_party.propagate = True
        third_party.addFilter(redaction)


__all__ = ["JsonFormatter", "Redactor", "SensitiveDataFilter", "configure_logging"]
