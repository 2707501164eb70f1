"""Byte-slot persistence backends for the entity collections."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Protocol

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from .models import Base, BlobSlotORM

EVENTS_SLOT = "events"
INVENTORY_SLOT = "inventory"
SHOPPING_LISTS_SLOT = "shopping_lists"
SLOTS = (EVENTS_SLOT, INVENTORY_SLOT, SHOPPING_LISTS_SLOT)

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    """Opaque key/value store with one byte blob per named slot."""

    def read(self, slot: str) -> bytes | None:
        """Return the stored blob, or ``None`` when the slot was never written."""

    def write(self, slot: str, data: bytes) -> None:
        """Replace the blob stored in ``slot``."""


def _check_slot(slot: str) -> None:
    if slot not in SLOTS:
        raise ValueError(f"Unknown storage slot '{slot}'")


class MemoryBlobStore:
    """Process-local blob store used by tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._slots: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def read(self, slot: str) -> bytes | None:
        _check_slot(slot)
        with self._lock:
            return self._slots.get(slot)

    def write(self, slot: str, data: bytes) -> None:
        _check_slot(slot)
        with self._lock:
            self._slots[slot] = bytes(data)


class SqlBlobStore:
    """Blob store persisting slots to SQLite through SQLAlchemy."""

    def __init__(self, database_path: Path) -> None:
        database_path.parent.mkdir(parents=True, exist_ok=True)
        self._engine: Engine = create_engine(
            f"sqlite:///{database_path}",
            future=True,
            echo=False,
            connect_args={"check_same_thread": False},
        )
        try:
            Base.metadata.create_all(self._engine)
        except OperationalError as exc:
            if "already exists" in str(exc).lower():
                logger.debug("Database schema already initialized: %s", exc)
            else:
                raise
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=self._engine, autoflush=False, autocommit=False, future=True
        )

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Yield a session with automatic commit/rollback."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def read(self, slot: str) -> bytes | None:
        _check_slot(slot)
        with self.session_scope() as session:
            row = session.get(BlobSlotORM, slot)
            if row is None:
                return None
            return bytes(row.value)

    def write(self, slot: str, data: bytes) -> None:
        _check_slot(slot)
        with self.session_scope() as session:
            row = session.get(BlobSlotORM, slot)
            if row is None:
                session.add(BlobSlotORM(name=slot, value=bytes(data)))
            else:
                row.value = bytes(data)

    def dispose(self) -> None:
        self._engine.dispose()


__all__ = [
    "BlobStore",
    "MemoryBlobStore",
    "SqlBlobStore",
    "EVENTS_SLOT",
    "INVENTORY_SLOT",
    "SHOPPING_LISTS_SLOT",
    "SLOTS",
]
