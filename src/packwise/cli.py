"""Command-line interface for Packwise."""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import List, Optional

import typer

from packwise.config import get_settings
from packwise.core.store import EntityStore
from packwise.db.blobs import SqlBlobStore
from packwise.logging_utils import configure_logging
from packwise.parsing.speech import SpeechEventParser
from packwise.suggestions.service import SuggestionService

app = typer.Typer(help="Packwise event, inventory and packing-list commands.")


def _bootstrap() -> None:
    settings = get_settings()
    configure_logging(
        settings.log_level,
        settings.log_format,
        [settings.api_token or "", settings.llm_api_key or ""],
    )


def _open_store() -> EntityStore:
    return EntityStore(SqlBlobStore(get_settings().database_path))


@app.command()
def suggest(
    title: str = typer.Argument(..., help="Event title to suggest items for."),
    on: Optional[datetime] = typer.Option(
        None, "--date", formats=["%Y-%m-%d"], help="Event date (YYYY-MM-DD)."
    ),
) -> None:
    """Print suggested items for an event title, local ones first."""

    _bootstrap()
    service = SuggestionService.from_settings()
    day = on.date() if on else date.today()
    for item in service.suggest(title, day):
        typer.echo(item)


@app.command()
def parse(
    text: str = typer.Argument(..., help="Transcribed or typed event description."),
    create: bool = typer.Option(False, "--create", help="Store the parsed event."),
    pretty: bool = typer.Option(True, "--pretty/--no-pretty", help="Pretty-print output JSON."),
) -> None:
    """Turn a free-text description into an event draft."""

    _bootstrap()
    parser = SpeechEventParser.from_settings()
    try:
        draft = parser.parse(text)
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc
    if draft is None:
        typer.secho("Could not understand the event description.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    payload = draft.model_dump(mode="json")
    if create:
        event = _open_store().add_event(draft.to_event())
        payload["event_id"] = str(event.id)
    typer.echo(json.dumps(payload, indent=2 if pretty else None, sort_keys=pretty))


@app.command()
def events(
    upcoming: bool = typer.Option(False, "--upcoming", help="Only open events still ahead."),
) -> None:
    """List stored events."""

    _bootstrap()
    store = _open_store()
    now = datetime.now()
    entries = store.upcoming_events() if upcoming else store.list_events()
    for event in entries:
        missing = [item for item in event.items if not store.has_item(item)]
        typer.echo(
            f"{event.date:%Y-%m-%d}  {event.title}  [{event.status(now).value}]"
            + (f"  missing: {', '.join(missing)}" if missing else "")
        )


@app.command()
def inventory() -> None:
    """List owned items."""

    _bootstrap()
    for item in _open_store().list_inventory():
        typer.echo(item)


@app.command("add-item")
def add_item(names: List[str] = typer.Argument(..., help="Item names to add.")) -> None:
    """Add items to the inventory; events with every item owned become completed."""

    _bootstrap()
    added = _open_store().add_items(names)
    typer.echo(f"Added {len(added)} item(s).")


@app.command("remove-item")
def remove_item(name: str = typer.Argument(..., help="Item name to remove.")) -> None:
    """Remove an item from the inventory."""

    _bootstrap()
    if not _open_store().remove_item(name):
        typer.secho(f"'{name}' is not in the inventory.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Removed {name}.")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Run the HTTP API."""

    from packwise.server.run import serve as run_server

    run_server(host, port, reload=reload)


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for `python -m packwise`."""
    app(prog_name="packwise", args=argv)


if __name__ == "__main__":
    main()
