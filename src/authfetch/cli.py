# ruff: noqa: B008
from __future__ import annotations

import json
from typing import Any

import typer
from rich.table import Table

from .helpers import call, console, env, require_tokens
from .models import Credentials, User

app = typer.Typer(help="Authenticated API client for humans and automation.")


def _print_user(user: User, json_output: bool) -> None:
    data = user.model_dump(exclude_none=True)
    if json_output:
        console.print_json(data=data)
        return
    table = Table(title="User", show_header=False)
    for key, value in data.items():
        table.add_row(str(key), str(value))
    console.print(table)


@app.command()
def login(
    email: str = typer.Option(..., prompt=True, help="Account email."),
    password: str = typer.Option(..., prompt=True, hide_input=True, help="Password (hidden)."),
    json_output: bool = typer.Option(False, "--json", help="Print the user record as JSON."),
) -> None:
    """Authenticate and cache the token pair."""
    settings, client = env()
    user = call(
        settings,
        client.store.login(Credentials(email=email, password=password)),
        "Login",
    )
    if not json_output:
        console.print(f"[green]Authenticated.[/green] Tokens saved to {settings.session_file}")
    _print_user(user, json_output)


@app.command()
def logout() -> None:
    """End the session on the server (best effort) and remove cached tokens."""
    settings, client = env()
    target = call(settings, client.store.logout(), "Logout")
    console.print(f"[green]Logged out.[/green] Continue at {target}")


@app.command()
def refresh(
    show_tokens: bool = typer.Option(False, "--show-tokens", help="Print refreshed tokens."),
) -> None:
    """Exchange the cached refresh token for a new token pair."""
    settings, client = env()
    if not client.store.refresh_token:
        console.print("[red]No refresh token available in session cache.[/red]")
        raise typer.Exit(code=1)
    call(settings, client.coordinator.coordinate_refresh(), "Refresh")
    console.print(f"[green]Tokens refreshed.[/green] Saved to {settings.session_file}")
    if show_tokens:
        snap = client.store.snapshot()
        console.print_json(
            data={"accessToken": snap.access_token, "refreshToken": snap.refresh_token}
        )


@app.command()
def session(show_tokens: bool = typer.Option(False, "--show-tokens")) -> None:
    """Show session file location and optionally the cached tokens."""
    settings, client = env()
    snap = client.store.snapshot()

    console.print(f"Session file: {settings.session_file}")
    if not snap.access_token:
        console.print("No cached tokens.")
        return
    if show_tokens:
        console.print_json(
            data={"accessToken": snap.access_token, "refreshToken": snap.refresh_token}
        )
    else:
        console.print("Tokens cached. Use --show-tokens to display them.")


@app.command()
def me(json_output: bool = typer.Option(False, "--json/--no-json")) -> None:
    """Fetch the current user, refreshing the session if needed."""
    settings, client = env()
    require_tokens(client)
    user = call(settings, client.fetch_user(), "User")
    _print_user(user, json_output)


@app.command()
def request(
    path: str = typer.Argument(..., help="API path, e.g. /projects."),
    method: str = typer.Option("GET", "--method", "-X", help="HTTP method."),
    data: str | None = typer.Option(None, "--data", "-d", help="JSON request body."),
) -> None:
    """Call any API path with the session's credentials and print the JSON answer."""
    settings, client = env()
    body: Any = None
    if data is not None:
        try:
            body = json.loads(data)
        except json.JSONDecodeError as exc:
            console.print(f"[red]Invalid JSON body:[/red] {exc}")
            raise typer.Exit(code=1) from exc
    resp = call(settings, client.request(path, method.upper(), json=body), "Request")
    try:
        console.print_json(data=resp.json())
    except ValueError:
        console.print(resp.text)


if __name__ == "__main__":
    app()
