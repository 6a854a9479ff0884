"""
Multi-strategy album search.

This module is the public entry point. A query is parsed once, then the
strategies it suggests are tried in order from most to least specific:

    exact -> title_artist -> artist_title -> artist_only -> title_only -> fuzzy

Strategies run one at a time because each stop decision depends on the
previous outcome. As soon as one strategy returns a large enough, confident
enough result set (>= 5 candidates at confidence >= 0.8 by default) the rest
are skipped. Everything collected so far is then merged and ranked by
ResultAggregator and truncated to the caller's limit.

Usage:
    from album_finder.musicbrainz import MusicBrainzClient
    from album_finder.search import AlbumSearcher

    async with MusicBrainzClient() as client:
        searcher = AlbumSearcher(client)
        albums = await searcher.search_albums("thriller michael jackson", limit=12)
"""

from __future__ import annotations

import logging

from album_finder.aggregate import ResultAggregator
from album_finder.config import SearchConfig
from album_finder.models import (
    Album,
    SearchOutcome,
    SearchResult,
    SearchStatus,
    SearchStrategy,
)
from album_finder.musicbrainz import SearchBackend
from album_finder.query_parser import QueryParser
from album_finder.strategies import StrategyExecutor

logger = logging.getLogger(__name__)


class AlbumSearcher:
    """
    Resolve a free-text query into a ranked, deduplicated list of albums.

    Holds no per-call state, so one instance can serve concurrent searches.
    Collaborators are injected; only the backend is required.
    """

    def __init__(
        self,
        backend: SearchBackend,
        parser: QueryParser | None = None,
        aggregator: ResultAggregator | None = None,
        config: SearchConfig | None = None,
    ):
        self.executor = StrategyExecutor(backend)
        self.parser = parser or QueryParser()
        self.aggregator = aggregator or ResultAggregator()
        self.config = config or SearchConfig()

    def should_stop(self, result: SearchResult) -> bool:
        """Early-stop rule: a confident strategy produced enough candidates."""
        return (
            result.confidence >= self.config.early_stop_confidence
            and len(result.candidates) >= self.config.early_stop_min_results
        )

    async def search(self, raw_query: str, limit: int | None = None) -> SearchOutcome:
        """
        Run the full pipeline and report how the albums were found.

        Never raises. Unlike search_albums(), the outcome tells an empty result
        apart from a backend that could not be reached.
        """
        if limit is None:
            limit = self.config.default_limit

        if not raw_query or not raw_query.strip():
            return SearchOutcome(ranked=(), status=SearchStatus.EMPTY_QUERY)

        if limit <= 0:
            return SearchOutcome(ranked=(), status=SearchStatus.NO_MATCHES)

        try:
            return await self._run(raw_query, limit)
        except Exception:
            logger.exception(f"Album search failed for '{raw_query}'")
            return SearchOutcome(ranked=(), status=SearchStatus.BACKEND_UNAVAILABLE)

    async def search_albums(self, raw_query: str, limit: int | None = None) -> list[Album]:
        """Ranked albums for `raw_query`: at most `limit`, unique ids, never raises."""
        outcome = await self.search(raw_query, limit)
        return list(outcome.albums)

    async def _run(self, raw_query: str, limit: int) -> SearchOutcome:
        parsed = self.parser.parse(raw_query)
        logger.info(
            f"Searching albums for '{raw_query}' with {len(parsed.search_strategies)} strategies"
        )

        recorded: list[tuple[tuple[Album, ...], float]] = []
        strategies_run: list[SearchStrategy] = []
        failures = 0
        early_stopped = False

        for strategy in parsed.search_strategies:
            result = await self.executor.execute(parsed, strategy, limit)
            strategies_run.append(strategy)

            if result.failed:
                failures += 1
            if result.candidates:
                recorded.append((result.candidates, result.confidence))

            if self.should_stop(result):
                logger.info(
                    f"Early stop after {strategy.value}: {len(result.candidates)} candidates "
                    f"at confidence {result.confidence:.2f}"
                )
                early_stopped = True
                break

        ranked = self.aggregator.score(recorded)[:limit]

        if ranked:
            status = SearchStatus.MATCHED
        elif failures:
            status = SearchStatus.BACKEND_UNAVAILABLE
        else:
            status = SearchStatus.NO_MATCHES

        logger.info(
            f"Found {len(ranked)} albums for '{raw_query}' "
            f"({len(strategies_run)} strategies run, status={status.value})"
        )
        return SearchOutcome(
            ranked=tuple(ranked),
            status=status,
            strategies_run=tuple(strategies_run),
            early_stopped=early_stopped,
        )
