"""
Defines the command-line interface for inspecting and administering the store
database using Typer.
"""

import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from putio_sync import __version__
from putio_sync.models.config import APP_DIR_NAME
from putio_sync.storage.engine import DEFAULT_OPEN_TIMEOUT
from putio_sync.storage.store import Store

from .formatters import print_config, print_states_table, print_store_info

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=False,
        )
    ],
)
log = logging.getLogger("putio_sync")

app = typer.Typer(
    name="putio-sync-store",
    help="Inspect and administer the putio-sync database.",
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / APP_DIR_NAME


def default_db_path() -> Path:
    return get_config_dir() / f"{APP_DIR_NAME}.db"


def _store(ctx: typer.Context) -> Store:
    """Builds the store from the global options; opened by the `with` block."""
    return Store(ctx.obj["db"], timeout=ctx.obj["timeout"])


def _resolve_user(store: Store, user: str | None) -> str:
    """Falls back to the current user when none is given."""
    if user:
        return user
    current = store.get_current_user()
    if not current:
        log.warning("No user given and no current user is set.")
    return current


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    db: Path | None = typer.Option(
        None,
        "--db",
        envvar="PUTIO_SYNC_DB",
        help="Path of the database file.",
    ),
    timeout: float = typer.Option(
        DEFAULT_OPEN_TIMEOUT,
        "--timeout",
        help="Seconds to wait for another process to release the database.",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """putio-sync store administration"""
    if version:
        console.print(f"[bold]putio-sync[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("putio_sync").setLevel(log_level)

    ctx.obj = {"db": db or default_db_path(), "timeout": timeout}

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command(name="current-user")
def current_user_command(
    ctx: typer.Context,
    set_user: str | None = typer.Option(
        None, "--set", help="Make USER the current user."
    ),
):
    """Show or change the current (last logged-in) user."""
    with _store(ctx) as store:
        if set_user is not None:
            store.save_current_user(set_user)
            console.print(f"[green]✓ Current user set to '{set_user}'.[/green]")
            return
        user = store.get_current_user()
    if user:
        console.print(user)
    else:
        console.print("[dim]No current user.[/dim]")


@app.command()
def provision(
    ctx: typer.Context,
    user: str = typer.Argument(..., help="User whose buckets to create."),
):
    """Create a user's buckets. Safe to run more than once."""
    with _store(ctx) as store:
        store.create_buckets(user)
        buckets = store.buckets(user)
    console.print(f"[green]✓ Buckets for '{user}': {', '.join(buckets)}[/green]")


@app.command(name="config")
def config_command(
    ctx: typer.Context,
    user: str | None = typer.Argument(None, help="User (defaults to current)."),
    as_json: bool = typer.Option(False, "--json", help="Print as JSON."),
):
    """Show a user's configuration, falling back to the defaults."""
    with _store(ctx) as store:
        user = _resolve_user(store, user)
        config = store.get_config(user)
    if as_json:
        typer.echo(config.to_json())
    else:
        print_config(user, config, console)


@app.command(name="states")
def states_command(
    ctx: typer.Context,
    user: str | None = typer.Argument(None, help="User (defaults to current)."),
):
    """List a user's download states, hidden ones excluded."""
    with _store(ctx) as store:
        user = _resolve_user(store, user)
        states = store.list_states(user)
    print_states_table(user, states, console)


@app.command()
def info(ctx: typer.Context):
    """Show the database path, the current user and their buckets."""
    with _store(ctx) as store:
        user = store.get_current_user()
        buckets = store.buckets(user)
        print_store_info(store.path, user, buckets, console)
