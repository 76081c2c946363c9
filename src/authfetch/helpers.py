from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

import typer
from rich.console import Console

from .client import AuthenticatedClient
from .config import Settings
from .errors import (
    ApiError,
    AuthenticationError,
    AuthFetchError,
    InvalidSessionResponseError,
    SessionExpiredError,
    TransportError,
)
from .log import configure_logging
from .storage import FileCredentialStorage

console = Console()


def run(coro: Coroutine[Any, Any, Any]) -> Any:
    return asyncio.run(coro)


def env() -> tuple[Settings, AuthenticatedClient]:
    settings = Settings()
    configure_logging(settings.debug)
    client = AuthenticatedClient(settings, storage=FileCredentialStorage(settings.session_file))
    return settings, client


def require_tokens(client: AuthenticatedClient) -> None:
    if not client.store.access_token:
        console.print("[red]No session found. Run `authfetch login` first.[/red]")
        raise typer.Exit(code=1)


def call(settings: Settings, coro: Coroutine[Any, Any, Any], label: str) -> Any:
    """Run a client coroutine, turning library errors into a CLI exit."""
    try:
        return run(coro)
    except SessionExpiredError as exc:
        console.print(f"[red]{label} failed: session expired.[/red] Run `authfetch login` again.")
        _debug(settings, exc)
        raise typer.Exit(code=1) from exc
    except AuthenticationError as exc:
        console.print(f"[red]{label} failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    except InvalidSessionResponseError as exc:
        console.print(f"[red]{label} failed: unexpected response from the server.[/red]")
        _debug(settings, exc)
        raise typer.Exit(code=1) from exc
    except ApiError as exc:
        console.print(f"[red]{label} failed with HTTP {exc.status_code}.[/red]")
        _debug(settings, exc)
        raise typer.Exit(code=1) from exc
    except TransportError as exc:
        console.print(f"[red]{label} failed: could not reach the server.[/red]")
        _debug(settings, exc)
        raise typer.Exit(code=1) from exc
    except AuthFetchError as exc:
        console.print(f"[red]{label} failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _debug(settings: Settings, exc: Exception) -> None:
    if settings.debug:
        console.print(f"[red]{type(exc).__name__} (debug):[/red] {exc}")
    else:
        console.print("Set AUTHFETCH_DEBUG=1 for the raw error.")
