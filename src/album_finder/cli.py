"""CLI for album-finder using Typer and Rich.

Resolves free-text queries into ranked album candidates from MusicBrainz,
shows how a query is interpreted, and manages the HTTP cache.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Any

import typer

from album_finder.config import Config
from album_finder.console import (
    albums_table,
    parsed_query_table,
    print_error,
    print_warning,
    set_console,
    status,
)
from album_finder.console import (
    print as cprint,
)
from album_finder.coverart import CoverArtResolver
from album_finder.http_cache import HttpCache
from album_finder.models import SearchOutcome, SearchStatus
from album_finder.musicbrainz import MusicBrainzClient
from album_finder.query_parser import QueryParser
from album_finder.safe_logging import configure_rich_logging
from album_finder.search import AlbumSearcher


class OutputFormat(StrEnum):
    """Output format for CLI commands."""

    TEXT = "text"
    JSON = "json"


class ExitCode:
    """Standard exit codes for CLI commands."""

    SUCCESS = 0
    ERROR = 1
    NO_RESULTS = 2


app = typer.Typer(
    name="album-finder",
    help="Album-Finder: resolve free-text music queries into ranked MusicBrainz albums",
    no_args_is_help=True,
    add_completion=False,
)

cache_app = typer.Typer(help="HTTP cache management commands")
app.add_typer(cache_app, name="cache")


# Global state (set by callback)
class AppState:
    """Global application state passed between commands."""

    config: Config
    output_format: OutputFormat
    verbose: int


state = AppState()


def _emit_json(data: Any) -> None:
    cprint(json.dumps(data, indent=2), markup=False, highlight=False, soft_wrap=True)


def _make_cache() -> HttpCache | None:
    cfg = state.config
    if not cfg.http_cache.enabled:
        return None
    return HttpCache(cfg.http_cache.directory, ttl_seconds=cfg.http_cache.ttl_seconds)


def _make_client() -> MusicBrainzClient:
    mb = state.config.musicbrainz
    return MusicBrainzClient(
        cache=_make_cache(),
        rate_limit_per_sec=mb.rate_limit,
        base_url=mb.base_url,
        user_agent=mb.user_agent,
        timeout_s=mb.timeout_s,
        offline=state.config.offline_mode,
    )


def _make_resolver() -> CoverArtResolver:
    mb = state.config.musicbrainz
    return CoverArtResolver(
        base_url=mb.cover_art_base_url,
        placeholder_url=mb.placeholder_image_url,
    )


async def _run_search(query: str, limit: int | None) -> SearchOutcome:
    async with _make_client() as client:
        searcher = AlbumSearcher(client, config=state.config.search)
        return await searcher.search(query, limit)


@app.callback()
def main(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Path to configuration TOML file", exists=True),
    ] = None,
    offline: Annotated[
        bool, typer.Option(help="Run in offline mode (serve only cached responses)")
    ] = False,
    output: Annotated[
        OutputFormat,
        typer.Option("--output", "-o", help="Output format"),
    ] = OutputFormat.TEXT,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase verbosity"),
    ] = 0,
    cache_dir: Annotated[Path | None, typer.Option(help="HTTP cache directory")] = None,
    cache_ttl: Annotated[int | None, typer.Option(help="Cache TTL in seconds")] = None,
    no_cache: Annotated[bool, typer.Option(help="Disable HTTP caching")] = False,
    rate_limit: Annotated[
        float | None, typer.Option(help="MusicBrainz requests per second (0 disables)")
    ] = None,
) -> None:
    """Album-Finder: resolve free-text music queries into ranked MusicBrainz albums."""
    logger = logging.getLogger(__name__)

    # Load config (TOML + env vars)
    cfg = Config.load(config_path)

    # Apply CLI overrides (highest precedence: CLI > Env > Config File > Defaults)
    if offline:
        cfg.offline_mode = True
    if cache_dir:
        cfg.http_cache.directory = cache_dir
    if cache_ttl is not None:
        cfg.http_cache.ttl_seconds = cache_ttl
    if no_cache:
        cfg.http_cache.enabled = False
    if rate_limit is not None:
        cfg.musicbrainz.rate_limit = rate_limit

    if verbose >= 2:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    else:
        log_level = getattr(logging, cfg.logging.level.upper(), logging.WARNING)

    console = configure_rich_logging(level=log_level, format_string=cfg.logging.format)
    set_console(console)

    # Suppress external library logging unless very verbose (-vvv)
    if verbose < 3:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    if config_path:
        logger.info(f"Loaded config from {config_path}")
    logger.debug(f"Logging configured: level={logging.getLevelName(log_level)}")

    state.config = cfg
    state.output_format = output
    state.verbose = verbose


# ====================================================================
# MAIN COMMANDS
# ====================================================================


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="Free-text query, e.g. 'thriller michael jackson'")],
    limit: Annotated[
        int | None, typer.Option("--limit", "-n", help="Maximum albums to return", min=0)
    ] = None,
    show_strategies: Annotated[
        bool, typer.Option("--strategies", help="Show which strategies ran")
    ] = False,
) -> None:
    """Search MusicBrainz for albums matching a free-text query.

    Examples:
        album-finder search "thriller michael jackson"
        album-finder -o json search "bohemian rhapsody by queen" -n 5
    """
    if state.output_format == OutputFormat.JSON:
        outcome = asyncio.run(_run_search(query, limit))
    else:
        with status(f"Searching MusicBrainz for '{query}'..."):
            outcome = asyncio.run(_run_search(query, limit))

    resolver = _make_resolver()

    if state.output_format == OutputFormat.JSON:
        _emit_json(
            {
                "query": query,
                "status": outcome.status.value,
                "strategies_run": [s.value for s in outcome.strategies_run],
                "early_stopped": outcome.early_stopped,
                "albums": [
                    {
                        "id": scored.album.id,
                        "name": scored.album.name,
                        "artist": scored.album.artist_name,
                        "artist_id": scored.album.artist_id,
                        "release_date": scored.album.release_date,
                        "url": scored.album.url,
                        "image_url": resolver.image_url(scored.album),
                        "score": round(scored.score, 4),
                    }
                    for scored in outcome.ranked
                ],
            }
        )
    else:
        if outcome.ranked:
            cprint(albums_table(outcome.ranked, title=f"Albums for '{query}'"))
        elif outcome.status == SearchStatus.BACKEND_UNAVAILABLE:
            print_error("MusicBrainz could not be reached; no albums found")
        else:
            print_warning(f"No albums found for '{query}'")

        if show_strategies:
            ran = " -> ".join(s.value for s in outcome.strategies_run) or "none"
            suffix = " (early stop)" if outcome.early_stopped else ""
            cprint(f"Strategies: {ran}{suffix}")

    if outcome.status == SearchStatus.MATCHED:
        sys.exit(ExitCode.SUCCESS)
    if outcome.status == SearchStatus.BACKEND_UNAVAILABLE:
        sys.exit(ExitCode.ERROR)
    sys.exit(ExitCode.NO_RESULTS)


@app.command()
def parse(
    query: Annotated[str, typer.Argument(help="Free-text query to interpret")],
) -> None:
    """Show how a query is split into title/artist and which strategies would run."""
    parsed = QueryParser().parse(query)

    if state.output_format == OutputFormat.JSON:
        _emit_json(
            {
                "original": parsed.original,
                "terms": list(parsed.terms),
                "possible_title": parsed.possible_title,
                "possible_artist": parsed.possible_artist,
                "strategies": [s.value for s in parsed.search_strategies],
            }
        )
    else:
        cprint(parsed_query_table(parsed))


@app.command()
def art(
    release_id: Annotated[str, typer.Argument(help="MusicBrainz release ID")],
    check: Annotated[
        bool, typer.Option(help="Ask the Cover Art Archive whether art exists")
    ] = False,
) -> None:
    """Show Cover Art Archive URLs for a release."""
    resolver = _make_resolver()
    small = resolver.cover_art_url(release_id, "small")
    large = resolver.cover_art_url(release_id, "large")
    available = asyncio.run(resolver.has_cover_art(release_id)) if check else None

    if state.output_format == OutputFormat.JSON:
        _emit_json(
            {"release_id": release_id, "small": small, "large": large, "available": available}
        )
    else:
        cprint(f"Display:    {small}")
        cprint(f"Full size:  {large}")
        if available is not None:
            if available:
                cprint("[green]Artwork available[/green]")
            else:
                cprint("[yellow]No artwork[/yellow]")

    if available is False:
        sys.exit(ExitCode.NO_RESULTS)


# ====================================================================
# CACHE COMMANDS
# ====================================================================


@cache_app.command("status")
def cache_status() -> None:
    """Show HTTP cache statistics."""
    cfg = state.config.http_cache
    stats = HttpCache(cfg.directory, ttl_seconds=cfg.ttl_seconds).stats()

    if state.output_format == OutputFormat.JSON:
        _emit_json(
            {
                "directory": str(cfg.directory),
                "enabled": cfg.enabled,
                "ttl_seconds": cfg.ttl_seconds,
                "entries": stats.entries,
                "expired": stats.expired,
                "total_bytes": stats.total_bytes,
            }
        )
        return

    cprint("[bold]Cache Status[/bold]")
    cprint(f"  Directory: {cfg.directory}")
    cprint(f"  Enabled:   {cfg.enabled}")
    cprint(f"  Entries:   {stats.entries} ({stats.expired} expired)")
    cprint(f"  Size:      {stats.total_bytes} bytes")


@cache_app.command("purge")
def cache_purge(
    expired_only: Annotated[bool, typer.Option(help="Only purge expired entries")] = False,
    force: Annotated[bool, typer.Option(help="Skip confirmation prompt")] = False,
) -> None:
    """Purge HTTP cache entries."""
    cfg = state.config.http_cache
    cache = HttpCache(cfg.directory, ttl_seconds=cfg.ttl_seconds)

    if expired_only:
        removed = cache.purge_expired()
    else:
        if not force and not typer.confirm("Remove all cached responses?"):
            raise typer.Abort()
        removed = cache.clear()

    if state.output_format == OutputFormat.JSON:
        _emit_json({"removed": removed})
    else:
        cprint(f"[green]Removed {removed} cache entries[/green]")


if __name__ == "__main__":
    app()
