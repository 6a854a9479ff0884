"""Shared Rich console and rendering helpers for the album-finder CLI.

Provides a global Rich console instance and the tables used to show parsed
queries and ranked albums.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.status import Status
from rich.table import Table

from album_finder.models import ParsedQuery, ScoredAlbum

# Global console instance (initialized in CLI)
_console: Console | None = None


def get_console() -> Console:
    """Get the global Rich console instance.

    Raises:
        RuntimeError: If console not initialized (should only happen in tests)
    """
    if _console is None:
        raise RuntimeError("Console not initialized. Call set_console() first.")
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console


@contextmanager
def status(message: str, spinner: str = "dots") -> Iterator[Status]:
    """Show a spinner while a search is in flight.

    Example:
        with status("Searching MusicBrainz..."):
            outcome = asyncio.run(searcher.search(query))
    """
    with get_console().status(message, spinner=spinner) as st:
        yield st


def print(*args: Any, **kwargs: Any) -> None:
    """Print to the global console."""
    get_console().print(*args, **kwargs)


def print_error(message: str) -> None:
    get_console().print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    get_console().print(f"[yellow]Warning: {message}[/yellow]")


def albums_table(ranked: Sequence[ScoredAlbum], title: str = "Albums") -> Table:
    """Build a table of ranked albums with their scores."""
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Album", style="bold")
    table.add_column("Artist")
    table.add_column("Date")
    table.add_column("Score", justify="right")
    table.add_column("MBID", style="dim")

    for rank, scored in enumerate(ranked, start=1):
        album = scored.album
        table.add_row(
            str(rank),
            album.name,
            album.artist_name,
            album.release_date or "",
            f"{scored.score:.3f}",
            album.id,
        )
    return table


def parsed_query_table(parsed: ParsedQuery) -> Table:
    table = Table(title=f"Parsed: {parsed.original!r}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Terms", ", ".join(repr(t) for t in parsed.terms) or "-")
    table.add_row("Title", parsed.possible_title or "-")
    table.add_row("Artist", parsed.possible_artist or "-")
    table.add_row(
        "Strategies",
        " -> ".join(
            f"{s.value} ({s.base_confidence:.2f})" for s in parsed.search_strategies
        ),
    )
    return table
