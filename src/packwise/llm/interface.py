"""Text-generation runtime abstraction layer."""

from __future__ import annotations

from typing import Protocol


class TextGenerator(Protocol):
    """Protocol for text-generation backends."""

    def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        """Return generated text for the supplied prompt."""


class MockTextGenerator:
    """Deterministic generator returning a canned reply, for development and tests."""

    def __init__(self, reply: str = "[]") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        self.prompts.append(prompt)
        return self.reply
