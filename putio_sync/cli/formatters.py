"""
Functions for formatting and displaying store contents in the console using Rich.
"""

from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from putio_sync.models.config import SyncConfig
from putio_sync.models.state import DownloadState, DownloadStatus
from putio_sync.utils.duration import format_duration

STATUS_COLORS = {
    DownloadStatus.QUEUED: "dim",
    DownloadStatus.DOWNLOADING: "cyan",
    DownloadStatus.PAUSED: "yellow",
    DownloadStatus.COMPLETED: "green",
    DownloadStatus.FAILED: "red",
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "StorageUnavailableError": [
            "• Another putio-sync instance may be holding the database lock.",
            "• Check that the database directory is writable.",
            "• Use --db to point at a different database file.",
        ],
        "BucketNotFoundError": [
            "• Run `putio-sync-store provision <USER>` first.",
        ],
        "StateNotFoundError": [
            "• Run `putio-sync-store states` to list known files.",
        ],
        "SerializationError": [
            "• The database may have been written by an incompatible version.",
        ],
        "EnvironmentResolutionError": [
            "• Set the HOME environment variable.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(user: str, config: SyncConfig, console: Console | None = None):
    """Displays a user's configuration, hiding the OAuth2 token."""
    console = console or Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    for name, field in SyncConfig.model_fields.items():
        value = getattr(config, name)
        if name == "oauth2_token":
            value = "********" if value else ""
        elif name == "poll_interval":
            value = format_duration(value)
        table.add_row(f"{field.alias or name}:", str(value))

    console.print(
        Panel(
            table,
            title=f"Configuration ([dim]{user or 'defaults'}[/dim])",
            border_style="cyan",
            expand=False,
        )
    )


def print_states_table(
    user: str, states: list[DownloadState], console: Console | None = None
):
    """Displays a table of download states."""
    console = console or Console()
    if not states:
        console.print(f"[dim]No downloads for '{user}'.[/dim]")
        return

    table = Table(title=f"Downloads of {user}", box=box.ROUNDED)
    table.add_column("File ID", justify="right", style="bold")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Progress", justify="right")

    for state in states:
        color = STATUS_COLORS.get(state.status, "white")
        table.add_row(
            str(state.file_id),
            state.name,
            f"[{color}]{state.status.value}[/{color}]",
            f"{state.progress:.0%}",
        )
    console.print(table)


def print_store_info(
    path: Path, current_user: str, buckets: list[str], console: Console | None = None
):
    """Displays a summary of the database file."""
    console = console or Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("Database:", str(path))
    table.add_row("Current user:", current_user or "[dim]none[/dim]")
    table.add_row("Buckets:", ", ".join(buckets) or "[dim]none[/dim]")
    console.print(Panel(table, title="putio-sync store", border_style="cyan"))
