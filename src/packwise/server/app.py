"""ASGI application for Packwise."""
# mypy: ignore-errors

from __future__ import annotations

import logging
from datetime import date, datetime
from time import perf_counter
from typing import Any, Literal, Optional
from uuid import UUID, uuid4

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field, ValidationError

from packwise import __version__, metrics
from packwise.config import Settings, get_settings
from packwise.core.store import EntityStore
from packwise.db.blobs import SqlBlobStore
from packwise.logging_utils import configure_logging as configure_app_logging
from packwise.models.draft import EventDraft
from packwise.models.event import Event, EventStatus
from packwise.models.shopping import ShoppingList, ShoppingListStatus
from packwise.parsing.speech import SpeechEventParser
from packwise.server import deps
from packwise.suggestions.service import SuggestionService

logger = logging.getLogger(__name__)


def _json_safe(value: Any) -> Any:
    """Convert non-serializable values into JSON-safe representations."""

    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple)):
        return [_json_safe(entry) for entry in value]
    if isinstance(value, dict):
        return {key: _json_safe(sub_value) for key, sub_value in value.items()}
    return repr(value)


def _normalize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [{key: _json_safe(value) for key, value in error.items()} for error in errors]


def _configure_logging(settings: Settings) -> None:
    secrets = [settings.api_token or "", settings.llm_api_key or ""]
    configure_app_logging(settings.log_level, settings.log_format, secrets)


def _store_error(exc: ValueError, default: int = status.HTTP_409_CONFLICT) -> HTTPException:
    """Map an EntityStore ``ValueError`` onto an HTTP error."""

    message = str(exc)
    code = status.HTTP_404_NOT_FOUND if "not found" in message.lower() else default
    return HTTPException(status_code=code, detail=message)


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=_normalize_validation_errors(exc.errors()),
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[EntityStore] = None,
    suggestion_service: Optional[SuggestionService] = None,
    speech_parser: Optional[SpeechEventParser] = None,
    clock: Optional[deps.Clock] = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Collaborators not supplied are built from ``settings``; the default store persists to
    the configured SQLite database.
    """

    settings = settings or get_settings()
    _configure_logging(settings)
    clock = clock or datetime.now

    application = FastAPI(title="Packwise", version=__version__)

    blob_store: SqlBlobStore | None = None
    if store is None:
        blob_store = SqlBlobStore(settings.database_path)
        store = EntityStore(blob_store, clock=clock)

        @application.on_event("shutdown")
        async def dispose_blob_store() -> None:
            blob_store.dispose()

    application.state.settings = settings
    application.state.store = store
    application.state.suggestion_service = suggestion_service or SuggestionService.from_settings(
        settings
    )
    application.state.speech_parser = speech_parser or SpeechEventParser.from_settings(settings)
    application.state.clock = clock
    logger.debug(
        "Application created with log level %s (ai_mode=%s)",
        settings.log_level,
        settings.ai_mode.value,
    )

    if settings.log_requests:
        access_logger = logging.getLogger("packwise.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        log_kwargs: dict[str, Any] = {}
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            log_kwargs["extra"] = {"request_id": request_id}

        logger.warning(
            "Validation error on %s %s: %s",
            request.method,
            request.url.path,
            exc.errors(),
            **log_kwargs,
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": _normalize_validation_errors(exc.errors())},
        )

    @application.get("/healthz", summary="Liveness probe")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    # ------------------------------------------------------------------ events

    @application.get("/events", response_model=list[EventResponse], summary="List events")
    def events_list(
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> list[EventResponse]:
        now = clock()
        return [EventResponse.from_event(event, now) for event in store.list_events()]

    @application.post(
        "/events",
        response_model=EventResponse,
        status_code=status.HTTP_201_CREATED,
        summary="Create event",
    )
    def events_create(
        payload: EventCreateRequest,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> EventResponse:
        try:
            event = Event(**payload.model_dump())
        except ValidationError as exc:
            raise _validation_error(exc) from exc
        try:
            created = store.add_event(event)
        except ValueError as exc:
            raise _store_error(exc) from exc
        return EventResponse.from_event(created, clock())

    @application.get(
        "/events/search", response_model=list[EventResponse], summary="Search events"
    )
    def events_search(
        q: str = Query(default=""),
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> list[EventResponse]:
        now = clock()
        return [EventResponse.from_event(event, now) for event in store.search_events(q)]

    @application.get(
        "/events/stats", response_model=EventStatisticsResponse, summary="Event statistics"
    )
    def events_stats(store: EntityStore = Depends(deps.get_store)) -> EventStatisticsResponse:
        stats = store.statistics()
        return EventStatisticsResponse(
            total=stats.total,
            today=stats.today,
            upcoming=stats.upcoming,
            completed=stats.completed,
            completion_rate=stats.completion_rate,
        )

    @application.get(
        "/events/upcoming", response_model=list[EventResponse], summary="Upcoming open events"
    )
    def events_upcoming(
        limit: Optional[int] = Query(default=None, ge=1, le=100),
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> list[EventResponse]:
        now = clock()
        return [EventResponse.from_event(event, now) for event in store.upcoming_events(limit)]

    @application.post("/events/parse", response_model=ParseResponse, summary="Parse free text")
    def events_parse(
        payload: ParseRequest,
        auth: None = Depends(deps.require_api_token),
        parser: SpeechEventParser = Depends(deps.get_speech_parser),
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> ParseResponse:
        try:
            draft = parser.parse(payload.text)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        if draft is None:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Could not understand the event description",
            )

        created: EventResponse | None = None
        if payload.create:
            event = store.add_event(draft.to_event())
            created = EventResponse.from_event(event, clock())
        return ParseResponse(draft=draft, event=created)

    @application.get("/events/{event_id}", response_model=EventResponse, summary="Get event")
    def events_get(
        event_id: UUID,
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> EventResponse:
        event = store.get_event(event_id)
        if event is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        return EventResponse.from_event(event, clock())

    @application.put("/events/{event_id}", response_model=EventResponse, summary="Update event")
    def events_update(
        event_id: UUID,
        payload: EventUpdateRequest,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> EventResponse:
        current = store.get_event(event_id)
        if current is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No fields provided for update",
            )
        try:
            updated = Event.model_validate({**current.model_dump(), **changes})
        except ValidationError as exc:
            raise _validation_error(exc) from exc
        try:
            saved = store.update_event(updated)
        except ValueError as exc:
            raise _store_error(exc) from exc
        return EventResponse.from_event(saved, clock())

    @application.delete(
        "/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete event"
    )
    def events_delete(
        event_id: UUID,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> None:
        try:
            store.delete_event(event_id)
        except ValueError as exc:
            raise _store_error(exc) from exc

    @application.post(
        "/events/{event_id}/completion",
        response_model=EventResponse,
        summary="Toggle event completion",
    )
    def events_completion(
        event_id: UUID,
        payload: CompletionRequest,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> EventResponse:
        try:
            event = store.set_event_completed(event_id, payload.completed)
        except ValueError as exc:
            raise _store_error(exc) from exc
        return EventResponse.from_event(event, clock())

    # ------------------------------------------------------------------ inventory

    @application.get("/inventory", response_model=list[str], summary="List owned items")
    def inventory_list(store: EntityStore = Depends(deps.get_store)) -> list[str]:
        return store.list_inventory()

    @application.post(
        "/inventory",
        response_model=InventoryAddResponse,
        status_code=status.HTTP_201_CREATED,
        summary="Add owned items",
    )
    def inventory_add(
        payload: InventoryAddRequest,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> InventoryAddResponse:
        added = store.add_items(payload.items)
        return InventoryAddResponse(added=added, inventory=store.list_inventory())

    @application.delete(
        "/inventory", status_code=status.HTTP_204_NO_CONTENT, summary="Clear inventory"
    )
    def inventory_clear(
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> None:
        store.clear_inventory()

    @application.delete(
        "/inventory/{name}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove owned item"
    )
    def inventory_remove(
        name: str,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> None:
        if not store.remove_item(name):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found")

    # ------------------------------------------------------------------ shopping lists

    @application.get(
        "/shopping-lists", response_model=list[ShoppingListResponse], summary="List shopping lists"
    )
    def shopping_lists_list(
        state: Literal["all", "active", "completed"] = Query(default="all"),
        store: EntityStore = Depends(deps.get_store),
    ) -> list[ShoppingListResponse]:
        if state == "active":
            entries = store.active_shopping_lists()
        elif state == "completed":
            entries = store.completed_shopping_lists()
        else:
            entries = store.list_shopping_lists()
        return [ShoppingListResponse.from_model(entry) for entry in entries]

    @application.post(
        "/shopping-lists",
        response_model=ShoppingListResponse,
        status_code=status.HTTP_201_CREATED,
        summary="Create a shopping list from events",
    )
    def shopping_lists_create(
        payload: ShoppingListCreateRequest,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> ShoppingListResponse:
        try:
            created = store.create_shopping_list(payload.event_ids)
        except ValueError as exc:
            raise _store_error(exc, default=status.HTTP_422_UNPROCESSABLE_ENTITY) from exc
        return ShoppingListResponse.from_model(created)

    @application.post(
        "/shopping-lists/{list_id}/toggle",
        response_model=ShoppingListResponse,
        summary="Check or uncheck a shopping list item",
    )
    def shopping_lists_toggle(
        list_id: UUID,
        payload: ShoppingToggleRequest,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> ShoppingListResponse:
        try:
            updated = store.toggle_shopping_item(list_id, payload.item)
        except ValueError as exc:
            raise _store_error(exc) from exc
        return ShoppingListResponse.from_model(updated)

    @application.post(
        "/shopping-lists/{list_id}/complete",
        response_model=ShoppingListResponse,
        summary="Complete a shopping list",
    )
    def shopping_lists_complete(
        list_id: UUID,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> ShoppingListResponse:
        try:
            completed = store.complete_shopping_list(list_id)
        except ValueError as exc:
            raise _store_error(exc) from exc
        return ShoppingListResponse.from_model(completed)

    @application.delete(
        "/shopping-lists/{list_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete a shopping list",
    )
    def shopping_lists_delete(
        list_id: UUID,
        auth: None = Depends(deps.require_api_token),
        store: EntityStore = Depends(deps.get_store),
    ) -> None:
        try:
            store.delete_shopping_list(list_id)
        except ValueError as exc:
            raise _store_error(exc) from exc

    # ------------------------------------------------------------------ suggestions

    @application.get(
        "/suggestions", response_model=SuggestionResponse, summary="Suggest items for a title"
    )
    def suggestions(
        title: str = Query(..., min_length=1, max_length=200),
        event_date: Optional[date] = Query(default=None, alias="date"),
        service: SuggestionService = Depends(deps.get_suggestion_service),
        clock: deps.Clock = Depends(deps.get_clock),
    ) -> SuggestionResponse:
        day = event_date or clock().date()
        delivered: list[list[str]] = []
        items = service.suggest(title, day, delivered.append)
        return SuggestionResponse(
            title=title,
            local=delivered[0] if delivered else [],
            suggestions=items,
        )

    return application


class EventResponse(BaseModel):
    id: UUID
    title: str
    date: datetime
    items: list[str]
    details: str
    is_completed: bool
    completed_date: Optional[datetime] = None
    status: EventStatus

    @classmethod
    def from_event(cls, event: Event, now: datetime) -> "EventResponse":
        return cls(**event.model_dump(), status=event.status(now))


class EventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    date: datetime
    items: list[str] = Field(default_factory=list)
    details: str = Field(default="", max_length=4000)


class EventUpdateRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[datetime] = None
    items: Optional[list[str]] = None
    details: Optional[str] = Field(default=None, max_length=4000)


class CompletionRequest(BaseModel):
    completed: bool


class EventStatisticsResponse(BaseModel):
    total: int
    today: int
    upcoming: int
    completed: int
    completion_rate: float


class ParseRequest(BaseModel):
    text: str = Field(max_length=4000)
    create: bool = False


class ParseResponse(BaseModel):
    draft: EventDraft
    event: Optional[EventResponse] = None


class InventoryAddRequest(BaseModel):
    items: list[str] = Field(min_length=1)


class InventoryAddResponse(BaseModel):
    added: list[str]
    inventory: list[str]


class ShoppingListCreateRequest(BaseModel):
    event_ids: list[UUID] = Field(min_length=1)


class ShoppingToggleRequest(BaseModel):
    item: str = Field(min_length=1)


class ShoppingListResponse(BaseModel):
    id: UUID
    event_ids: list[UUID]
    items: list[str]
    status: ShoppingListStatus
    checked_items: list[str]
    progress: float
    display_status: str
    created_date: datetime
    completed_date: Optional[datetime] = None
    completed_items_count: Optional[int] = None

    @classmethod
    def from_model(cls, entry: ShoppingList) -> "ShoppingListResponse":
        return cls(
            id=entry.id,
            event_ids=list(entry.event_ids),
            items=list(entry.items),
            status=entry.status,
            checked_items=sorted(entry.checked_items),
            progress=entry.progress,
            display_status=entry.display_status,
            created_date=entry.created_date,
            completed_date=entry.completed_date,
            completed_items_count=entry.completed_items_count,
        )


class SuggestionResponse(BaseModel):
    title: str
    local: list[str]
    suggestions: list[str]


__all__ = ["create_app"]
