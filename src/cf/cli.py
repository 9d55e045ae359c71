"""CLI interface for the cf tool using Typer."""

import logging
from typing import NoReturn, Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler

from cf.client import CodeforcesClient
from cf.exceptions import ChallengeBlockedError, CodeforcesError, InvalidCredentialsError
from cf.models import Config, ProbeStatus
from cf.session import SessionManager
from cf.storage import Storage

app = typer.Typer(help="Use Codeforces from your terminal")
console = Console()

MAX_LOGIN_ATTEMPTS = 3


class AppState:
    """Per-process state handed to every command through the Typer context."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._client: Optional[CodeforcesClient] = None

    @property
    def client(self) -> CodeforcesClient:
        if self._client is None:
            self._client = SessionManager(self.storage).get_client()
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _handle_error(e: Exception) -> NoReturn:
    """Handle common exceptions with user-friendly messages."""
    if isinstance(e, ChallengeBlockedError):
        console.print(f"[yellow]{e.message}[/yellow]")
    elif isinstance(e, CodeforcesError):
        console.print(f"[red]{e.message}[/red]")
    elif isinstance(e, httpx.HTTPError):
        console.print(f"[red]Network error: {e}[/red]")
    else:
        console.print(f"[red]Error: {e}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Codeforces Tool (cf). Run 'cf config' first to set your handle and password."""
    _setup_logging(verbose)
    state = AppState(Storage())
    ctx.obj = state
    ctx.call_on_close(state.close)


@app.command()
def config(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Codeforces base URL"),
    proxy: Optional[str] = typer.Option(
        None, "--proxy", help="Proxy URL (empty to use the environment settings)"
    ),
    session_path: Optional[str] = typer.Option(None, "--session-path", help="Where to keep the session file"),
) -> None:
    """Configure host and proxy, then set and verify your credentials."""
    state: AppState = ctx.obj
    current = state.storage.get_config()
    updated = Config(
        host=host or current.host,
        proxy=current.proxy if proxy is None else proxy,
        session_path=current.session_path if session_path is None else session_path,
        timeout=current.timeout,
    )
    if updated != current:
        state.storage.save_config(updated)
        console.print(f"[green]Saved config to {state.storage.config_path}[/green]")

    client = state.client
    for _ in range(MAX_LOGIN_ATTEMPTS):
        handle_or_email = typer.prompt(
            "Handle or email", default=client.session.handle_or_email or None
        )
        password = typer.prompt("Password", hide_input=True)

        try:
            handle = client.login_as(handle_or_email, password)
        except InvalidCredentialsError as e:
            console.print(f"[red]{e.message}[/red]")
        except (CodeforcesError, httpx.HTTPError) as e:
            _handle_error(e)
        else:
            console.print(f"[green]Logged in as [bold]{handle}[/bold][/green]")
            return

    console.print(f"[red]Giving up after {MAX_LOGIN_ATTEMPTS} failed login attempts.[/red]")
    raise typer.Exit(1)


@app.command()
def login(ctx: typer.Context) -> None:
    """Log in with the stored credentials."""
    state: AppState = ctx.obj
    try:
        handle = state.client.login()
    except (CodeforcesError, httpx.HTTPError) as e:
        _handle_error(e)
    console.print(f"[green]Logged in as [bold]{handle}[/bold][/green]")


@app.command("test")
def test_connection(ctx: typer.Context) -> None:
    """Check that Codeforces is reachable with the current session."""
    state: AppState = ctx.obj
    try:
        result = state.client.probe()
    except (CodeforcesError, httpx.HTTPError) as e:
        _handle_error(e)

    if result.status is ProbeStatus.HEALTHY:
        handle = state.client.current_handle()
        console.print(f"[green]Successfully connected to Codeforces as [bold]{handle}[/bold]![/green]")
    elif result.status is ProbeStatus.CHALLENGE_BLOCKED:
        console.print(f"[yellow]Blocked by a challenge page.[/yellow] {result.reason}")
        raise typer.Exit(1)
    else:
        console.print(f"[red]Connection check failed: {result.reason}[/red]")
        raise typer.Exit(1)


@app.command()
def whoami(ctx: typer.Context) -> None:
    """Show the handle of the saved session."""
    state: AppState = ctx.obj
    handle = state.client.current_handle()
    if handle:
        console.print(handle)
    else:
        console.print("[yellow]Not logged in. Run 'cf config' to log in.[/yellow]")


if __name__ == "__main__":
    app()
