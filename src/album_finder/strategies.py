"""
Per-strategy backend query construction and candidate extraction.

Each SearchStrategy turns the parsed query into one or two MusicBrainz searches,
maps the hits to Album candidates, and tags them with the strategy's base
confidence. Backend failures never escape: they become an empty, zero-confidence
result so the remaining strategies can still run.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import assert_never

from album_finder.models import (
    CONFIDENCE_SWAPPED_FACTOR,
    Album,
    ParsedQuery,
    SearchResult,
    SearchStrategy,
    album_from_release,
    album_from_track,
    dedupe_albums,
    track_from_recording,
)
from album_finder.musicbrainz import MusicBrainzRecording, MusicBrainzRelease, SearchBackend

logger = logging.getLogger(__name__)


def field_query(**fields: str) -> str:
    """
    Build a Lucene field-qualified AND query.

    Example:
        field_query(release="thriller", artist="michael jackson")
        # 'release:"thriller" AND artist:"michael jackson"'
    """
    return " AND ".join(f'{name}:"{value}"' for name, value in fields.items())


def albums_from_releases(releases: list[MusicBrainzRelease]) -> list[Album]:
    return [album_from_release(release) for release in releases]


def albums_from_recordings(recordings: list[MusicBrainzRecording]) -> list[Album]:
    """Albums referenced by recordings (first release each), first occurrence kept."""
    albums: list[Album] = []
    for recording in recordings:
        album = album_from_track(track_from_recording(recording))
        if album is not None:
            albums.append(album)
    return dedupe_albums(albums)


class StrategyExecutor:
    """
    Execute a single search strategy against the backend.

    The backend is injected so tests (and alternative metadata services) can
    substitute anything implementing SearchBackend.
    """

    def __init__(self, backend: SearchBackend):
        self.backend = backend

    async def execute(
        self, parsed: ParsedQuery, strategy: SearchStrategy, limit: int = 25
    ) -> SearchResult:
        """
        Run `strategy` for `parsed` and return its candidates.

        Never raises. A strategy whose required fields are missing returns
        confidence 0 without calling the backend.
        """
        try:
            result = await self._dispatch(parsed, strategy, limit)
        except Exception as e:
            logger.warning(f"Strategy {strategy.value} failed: {e}")
            return SearchResult(candidates=(), strategy=strategy, confidence=0.0, failed=True)

        logger.debug(
            f"Strategy {strategy.value}: {len(result.candidates)} candidates "
            f"(confidence {result.confidence:.2f})"
        )
        return result

    async def _dispatch(
        self, parsed: ParsedQuery, strategy: SearchStrategy, limit: int
    ) -> SearchResult:
        match strategy:
            case SearchStrategy.EXACT:
                return await self._exact(parsed, limit)
            case SearchStrategy.TITLE_ARTIST:
                return await self._title_artist(parsed, limit)
            case SearchStrategy.ARTIST_TITLE:
                return await self._artist_title(parsed, limit)
            case SearchStrategy.ARTIST_ONLY:
                return await self._artist_only(parsed, limit)
            case SearchStrategy.TITLE_ONLY:
                return await self._title_only(parsed, limit)
            case SearchStrategy.FUZZY:
                return await self._fuzzy(parsed, limit)
            case _:
                assert_never(strategy)

    def _skipped(self, strategy: SearchStrategy) -> SearchResult:
        return SearchResult(candidates=(), strategy=strategy, confidence=0.0)

    async def _release_search(
        self, strategy: SearchStrategy, query: str, limit: int
    ) -> SearchResult:
        releases = await self.backend.search_releases(query, limit)
        return SearchResult(
            candidates=tuple(albums_from_releases(releases)),
            strategy=strategy,
            confidence=strategy.base_confidence,
        )

    async def _release_and_recording_search(
        self,
        strategy: SearchStrategy,
        release_query: str,
        recording_query: str,
        limit: int,
    ) -> SearchResult:
        """Union of release hits and the releases of recording hits, deduplicated by id."""
        # Let both searches finish before surfacing a failure from either
        releases, recordings = await asyncio.gather(
            self.backend.search_releases(release_query, limit),
            self.backend.search_recordings(recording_query, limit),
            return_exceptions=True,
        )
        if isinstance(releases, BaseException):
            raise releases
        if isinstance(recordings, BaseException):
            raise recordings

        albums = albums_from_releases(releases) + albums_from_recordings(recordings)
        return SearchResult(
            candidates=tuple(dedupe_albums(albums)),
            strategy=strategy,
            confidence=strategy.base_confidence,
        )

    async def _exact(self, parsed: ParsedQuery, limit: int) -> SearchResult:
        return await self._release_search(SearchStrategy.EXACT, parsed.original, limit)

    async def _title_artist(self, parsed: ParsedQuery, limit: int) -> SearchResult:
        title, artist = parsed.possible_title, parsed.possible_artist
        if not title or not artist:
            return self._skipped(SearchStrategy.TITLE_ARTIST)

        return await self._release_and_recording_search(
            SearchStrategy.TITLE_ARTIST,
            field_query(release=title, artist=artist),
            field_query(recording=title, artist=artist),
            limit,
        )

    async def _artist_title(self, parsed: ParsedQuery, limit: int) -> SearchResult:
        if not parsed.possible_title or not parsed.possible_artist:
            return self._skipped(SearchStrategy.ARTIST_TITLE)

        swapped = dataclasses.replace(
            parsed,
            possible_title=parsed.possible_artist,
            possible_artist=parsed.possible_title,
        )
        result = await self._title_artist(swapped, limit)
        return dataclasses.replace(
            result,
            strategy=SearchStrategy.ARTIST_TITLE,
            confidence=result.confidence * CONFIDENCE_SWAPPED_FACTOR,
        )

    async def _artist_only(self, parsed: ParsedQuery, limit: int) -> SearchResult:
        if not parsed.possible_artist:
            return self._skipped(SearchStrategy.ARTIST_ONLY)
        return await self._release_search(
            SearchStrategy.ARTIST_ONLY, field_query(artist=parsed.possible_artist), limit
        )

    async def _title_only(self, parsed: ParsedQuery, limit: int) -> SearchResult:
        if not parsed.possible_title:
            return self._skipped(SearchStrategy.TITLE_ONLY)
        return await self._release_search(
            SearchStrategy.TITLE_ONLY, field_query(release=parsed.possible_title), limit
        )

    async def _fuzzy(self, parsed: ParsedQuery, limit: int) -> SearchResult:
        half = limit // 2
        return await self._release_and_recording_search(
            SearchStrategy.FUZZY, parsed.original, parsed.original, half
        )
