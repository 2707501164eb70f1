"""Free-text event parsing."""

from .fallback import parse_locally, parse_structured_draft, parse_text_fallback
from .speech import SpeechEventParser

__all__ = ["SpeechEventParser", "parse_locally", "parse_structured_draft", "parse_text_fallback"]
