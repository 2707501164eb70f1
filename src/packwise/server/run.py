"""Helper for running the Packwise ASGI application."""

from __future__ import annotations

import os

import uvicorn

APP_FACTORY = "packwise.server.app:create_app"


def _parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid PACKWISE_SERVER_PORT '{value}': {exc}") from exc
    if not 0 < port < 65536:
        raise SystemExit("PACKWISE_SERVER_PORT must be between 1 and 65535.")
    return port


def serve(host: str, port: int, *, reload: bool = False) -> None:
    uvicorn.run(APP_FACTORY, host=host, port=port, reload=reload, factory=True)


def main() -> None:
    """Start the API using PACKWISE_SERVER_HOST / PACKWISE_SERVER_PORT."""

    host = os.environ.get("PACKWISE_SERVER_HOST", "127.0.0.1")
    port = _parse_port(os.environ.get("PACKWISE_SERVER_PORT", "8000"))
    serve(host, port, reload=os.environ.get("RELOAD") == "1")


if __name__ == "__main__":
    main()
