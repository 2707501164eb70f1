"""Consistency engine and the entity store it guards."""

from packwise.core.consistency import ConsistencyEngine
from packwise.core.store import EntityStore

__all__ = ["ConsistencyEngine", "EntityStore"]
