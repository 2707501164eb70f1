"""
Packwise personal planning assistant.

The package keeps events, the personal inventory and shopping lists consistent with each
other and suggests the items an event needs, from local heuristics and an optional
text-generation backend.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
