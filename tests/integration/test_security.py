"""Security-related integration tests."""

from __future__ import annotations

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from packwise.config import reset_settings
from packwise.core.store import EntityStore
from packwise.db.blobs import MemoryBlobStore
from packwise.server.app import create_app


@pytest.fixture()
def secure_client(monkeypatch) -> TestClient:
    monkeypatch.setenv("PACKWISE_API_TOKEN", "secret-token")
    reset_settings()
    app = create_app(store=EntityStore(MemoryBlobStore()))
    yield TestClient(app)
    reset_settings()


def test_mutations_require_api_token(secure_client):
    response = secure_client.post("/inventory", json={"items": ["tent"]})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = secure_client.post(
        "/inventory",
        json={"items": ["tent"]},
        headers={"Authorization": "Bearer secret-token"},
    )
    assert response.status_code == status.HTTP_201_CREATED


@pytest.mark.parametrize(
    ("headers", "params"),
    [
        ({"X-API-Key": "secret-token"}, {}),
        ({}, {"api_token": "secret-token"}),
    ],
)
def test_alternative_token_locations(secure_client, headers, params):
    response = secure_client.post(
        "/events",
        json={"title": "Camping", "date": "2026-10-17T09:00:00"},
        headers=headers,
        params=params,
    )
    assert response.status_code == status.HTTP_201_CREATED


def test_wrong_token_is_rejected(secure_client):
    response = secure_client.delete("/inventory", headers={"Authorization": "Bearer nope"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_reads_stay_open(secure_client):
    assert secure_client.get("/inventory").status_code == status.HTTP_200_OK
    assert secure_client.get("/events").status_code == status.HTTP_200_OK
