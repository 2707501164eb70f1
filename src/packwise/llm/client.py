"""HTTP client for OpenAI-compatible (Groq) and Ollama chat endpoints."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from typing import Optional

import httpx

from packwise.config import Settings, get_settings

DEFAULT_TIMEOUT = 15.0

logger = logging.getLogger(__name__)


class LLMClient:
    """Send a single-turn chat request and return the assistant text.

    Raises ``httpx.HTTPError`` on transport failures and ``ValueError`` when the reply
    carries no content; callers decide how to degrade.
    """

    def __init__(
        self,
        *,
        base_url: str,
        model: str,
        api_key: Optional[str],
        provider: str = "openai",
        system_prompt: str = "You are a helpful planning assistant.",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._provider = (provider or "openai").strip().lower()
        self._system_prompt = system_prompt
        self._timeout = timeout

    def with_options(
        self,
        *,
        system_prompt: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> "LLMClient":
        """Return a copy sharing the endpoint but using a different prompt or timeout."""

        return LLMClient(
            base_url=self._base_url,
            model=self._model,
            api_key=self._api_key,
            provider=self._provider,
            system_prompt=system_prompt if system_prompt is not None else self._system_prompt,
            timeout=timeout if timeout is not None else self._timeout,
        )

    def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        messages = [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": prompt},
        ]
        if self._provider == "ollama":
            return self._ollama_chat(messages, max_tokens=max_tokens, temperature=temperature)
        return self._openai_chat(messages, max_tokens=max_tokens, temperature=temperature)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _openai_chat(self, messages: list[dict[str, str]], *, max_tokens: int, temperature: float) -> str:
        endpoint = self._base_url
        if not endpoint.endswith("/chat/completions"):
            endpoint = f"{endpoint}/chat/completions"
        payload = {
            "model": self._model,
            "temperature": max(0.0, float(temperature)),
            "max_tokens": max(1, int(max_tokens)),
            "messages": messages,
        }
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(endpoint, json=payload, headers=self._headers())
        response.raise_for_status()
        body = response.json()
        choices = body.get("choices") or []
        if not choices:
            raise ValueError("Text-generation endpoint returned no choices.")
        message = choices[0].get("message") or {}
        content = (message.get("content") or "").strip()
        if not content:
            raise ValueError("Text-generation endpoint returned an empty response.")
        return content

    def _ollama_chat(self, messages: list[dict[str, str]], *, max_tokens: int, temperature: float) -> str:
        endpoint = self._base_url
        if not endpoint.endswith("/api/chat"):
            endpoint = f"{endpoint}/api/chat"
        payload = {
            "model": self._model,
            "messages": messages,
            "stream": False,
            "options": {
                "temperature": max(0.0, float(temperature)),
                "num_predict": max(1, int(max_tokens)),
            },
        }
        with httpx.Client(timeout=self._timeout) as client:
            response = client.post(endpoint, json=payload, headers=self._headers())
        response.raise_for_status()
        body = response.json()
        message = body.get("message") or {}
        content = (message.get("content") or "").strip()
        if not content:
            raise ValueError("Ollama response did not include content.")
        return content


def build_llm_client(settings: Optional[Settings] = None) -> LLMClient | None:
    """Create a client when the user opted into cloud calls with a valid credential."""

    settings = settings or get_settings()
    if not settings.cloud_enabled:
        logger.debug("Cloud text generation disabled (mode=%s)", settings.ai_mode.value)
        return None

    return LLMClient(
        base_url=settings.llm_base_url,
        model=settings.llm_model,
        api_key=settings.llm_api_key,
        provider=settings.llm_provider,
        timeout=settings.suggestion_timeout,
    )


__all__ = ["LLMClient", "build_llm_client"]
