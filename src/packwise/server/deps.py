"""Dependency definitions for the Packwise API server."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from fastapi import Depends, HTTPException, Request, status

from packwise.config import Settings
from packwise.core.store import EntityStore
from packwise.parsing.speech import SpeechEventParser
from packwise.suggestions.service import SuggestionService

Clock = Callable[[], datetime]


def get_store(request: Request) -> EntityStore:
    """Return the entity store owned by the running application."""

    return request.app.state.store


def get_suggestion_service(request: Request) -> SuggestionService:
    return request.app.state.suggestion_service


def get_speech_parser(request: Request) -> SpeechEventParser:
    return request.app.state.speech_parser


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def require_api_token(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Ensure requests carry the configured API token when required."""

    token = settings.api_token
    if not token:
        return

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.split("Bearer ")[-1].strip() == token:
        return

    if request.headers.get("X-API-Key") == token:
        return

    if request.query_params.get("api_token") == token:
        return

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
