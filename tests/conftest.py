"""Shared pytest fixtures for the Packwise test suite."""

from __future__ import annotations

import os
from datetime import datetime
from typing import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from packwise.config import get_settings, reset_settings
from packwise.core.store import EntityStore
from packwise.db.blobs import MemoryBlobStore
from packwise.parsing.speech import SpeechEventParser
from packwise.server.app import create_app
from packwise.suggestions.service import SuggestionService

# A Wednesday; the following Saturday is 2026-10-17.
FIXED_NOW = datetime(2026, 10, 14, 9, 0)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Give every test a clean environment and its own SQLite database location."""

    for name in list(os.environ):
        if name.startswith("PACKWISE_") or name == "GROQ_API_KEY":
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PACKWISE_DATABASE_PATH", str(tmp_path / "test_packwise.db"))
    monkeypatch.setenv("PACKWISE_LOG_LEVEL", "WARNING")
    reset_settings()
    yield
    reset_settings()


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture()
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def store(blob_store, clock) -> EntityStore:
    return EntityStore(blob_store, clock=clock)


@pytest.fixture()
def app(store, clock) -> Generator[FastAPI, None, None]:
    """Create a FastAPI app bound to the in-memory store for each test."""

    settings = get_settings()
    application = create_app(
        settings,
        store=store,
        suggestion_service=SuggestionService(settings=settings),
        speech_parser=SpeechEventParser(settings=settings, clock=clock),
        clock=clock,
    )
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    """Return a test client bound to the FastAPI app."""

    return TestClient(app)
