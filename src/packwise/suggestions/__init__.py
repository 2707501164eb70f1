"""Item suggestions for event titles."""

from .combiner import combine
from .external import ExternalSuggestionAdapter
from .local import LocalSuggestionScorer
from .service import SuggestionDebouncer, SuggestionService

__all__ = [
    "ExternalSuggestionAdapter",
    "LocalSuggestionScorer",
    "SuggestionDebouncer",
    "SuggestionService",
    "combine",
]
