"""Text-generation backends."""

from packwise.llm.client import LLMClient, build_llm_client
from packwise.llm.interface import MockTextGenerator, TextGenerator

__all__ = ["LLMClient", "MockTextGenerator", "TextGenerator", "build_llm_client"]
