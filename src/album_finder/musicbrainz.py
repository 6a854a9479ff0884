"""
MusicBrainz API client used as the album search backend.

Supports release, recording, and artist searches (free text or Lucene
field-qualified queries) plus release/recording lookups by MBID, with rate
limiting (1 req/sec default), an optional response cache, and offline mode.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from album_finder.http_cache import HttpCache
from album_finder.safe_logging import redact_dict

logger = logging.getLogger(__name__)


class MusicBrainzOfflineError(RuntimeError):
    """Raised in offline mode when a request is not in the cache."""


@dataclass
class MusicBrainzReleaseRef:
    """Release reference embedded in a recording search hit."""

    mbid: str
    title: str
    date: str | None = None


@dataclass
class MusicBrainzRecording:
    """MusicBrainz recording entity."""

    mbid: str
    title: str
    artist_mbid: str | None = None
    artist_name: str | None = None
    length_ms: int | None = None
    releases: list[MusicBrainzReleaseRef] = field(default_factory=list)
    disambiguation: str | None = None


@dataclass
class MusicBrainzRelease:
    """MusicBrainz release entity."""

    mbid: str
    title: str
    artist_mbid: str | None = None
    artist_name: str | None = None
    date: str | None = None
    country: str | None = None
    has_front_cover: bool = False
    disambiguation: str | None = None


@dataclass
class MusicBrainzArtist:
    """MusicBrainz artist entity."""

    mbid: str
    name: str
    sort_name: str | None = None
    disambiguation: str | None = None


class SearchBackend(Protocol):
    """The two searches the album search pipeline needs from a metadata service."""

    async def search_releases(self, query: str, limit: int = 25) -> list[MusicBrainzRelease]: ...

    async def search_recordings(
        self, query: str, limit: int = 25
    ) -> list[MusicBrainzRecording]: ...


def _primary_artist(data: dict[str, Any]) -> tuple[str | None, str | None]:
    """Return (artist_mbid, credited_name) of the first artist credit."""
    credits = data.get("artist-credit") or []
    if not credits:
        return None, None
    first = credits[0]
    artist = first.get("artist") or {}
    return artist.get("id"), first.get("name") or artist.get("name")


def parse_release(data: dict[str, Any]) -> MusicBrainzRelease:
    artist_mbid, artist_name = _primary_artist(data)
    cover_art = data.get("cover-art-archive") or {}
    return MusicBrainzRelease(
        mbid=data["id"],
        title=data.get("title", ""),
        artist_mbid=artist_mbid,
        artist_name=artist_name,
        date=data.get("date"),
        country=data.get("country"),
        has_front_cover=bool(cover_art.get("front", False)),
        disambiguation=data.get("disambiguation"),
    )


def parse_recording(data: dict[str, Any]) -> MusicBrainzRecording:
    artist_mbid, artist_name = _primary_artist(data)
    releases = [
        MusicBrainzReleaseRef(mbid=rel["id"], title=rel.get("title", ""), date=rel.get("date"))
        for rel in data.get("releases") or []
        if rel.get("id")
    ]
    return MusicBrainzRecording(
        mbid=data["id"],
        title=data.get("title", ""),
        artist_mbid=artist_mbid,
        artist_name=artist_name,
        length_ms=data.get("length"),
        releases=releases,
        disambiguation=data.get("disambiguation"),
    )


class MusicBrainzClient:
    """
    MusicBrainz API client for album search.

    Safe to share between concurrent searches: the only mutable state is the
    rate-limit clock, which is guarded by an asyncio lock.
    """

    BASE_URL = "https://musicbrainz.org/ws/2"
    USER_AGENT = "album-finder/0.1.0 ( https://github.com/album-finder/album-finder )"

    def __init__(
        self,
        cache: HttpCache | None = None,
        rate_limit_per_sec: float = 1.0,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout_s: float = 30.0,
        offline: bool = False,
    ):
        """
        Initialize MusicBrainz client.

        Args:
            cache: Optional response cache
            rate_limit_per_sec: Max requests per second (default 1.0 per ToS, 0 disables)
            base_url: Override for the web service root
            user_agent: Override for the User-Agent header
            timeout_s: Per-request timeout
            offline: Serve from cache only, never touch the network
        """
        self.cache = cache
        self.rate_limit_per_sec = rate_limit_per_sec
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.offline = offline
        self._last_request_time = 0.0
        self._client = httpx.AsyncClient(
            timeout=timeout_s,
            headers={"User-Agent": user_agent or self.USER_AGENT},
        )
        self._rate_limit_lock = asyncio.Lock()

    async def _rate_limit(self) -> None:
        """Enforce rate limiting (1 req/sec by default per MusicBrainz ToS)."""
        if self.rate_limit_per_sec <= 0:
            return

        async with self._rate_limit_lock:
            min_interval = 1.0 / self.rate_limit_per_sec
            elapsed = time.time() - self._last_request_time

            if elapsed < min_interval:
                await asyncio.sleep(min_interval - elapsed)

            self._last_request_time = time.time()

    async def _request(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """Make a rate-limited, cache-aware GET against the web service."""
        params["fmt"] = "json"

        url = f"{self.base_url}/{endpoint}"
        cache_key = f"{url}?{self._make_cache_key(params)}"

        if self.cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit: {cache_key}")
                return cached

        if self.offline:
            raise MusicBrainzOfflineError(f"Offline mode and no cached response for {cache_key}")

        await self._rate_limit()

        logger.debug(f"GET {url} params={params} headers={redact_dict(self._client.headers)}")
        response = await self._client.get(url, params=params)
        response.raise_for_status()
        data = response.json()

        if self.cache:
            self.cache.put(cache_key, data)

        return data

    def _make_cache_key(self, params: dict[str, str]) -> str:
        """Generate stable cache key from params."""
        sorted_items = sorted(params.items())
        return "&".join(f"{k}={v}" for k, v in sorted_items)

    async def search_releases(self, query: str, limit: int = 25) -> list[MusicBrainzRelease]:
        """
        Search releases by free text or Lucene query.

        Args:
            query: Free text or field-qualified query (e.g. `release:"x" AND artist:"y"`)
            limit: Max results

        Returns:
            List of MusicBrainzRelease objects in backend relevance order
        """
        params = {"query": query, "limit": str(limit), "inc": "artist-credits"}
        data = await self._request("release", params)
        return [parse_release(rel) for rel in data.get("releases", [])]

    async def search_recordings(self, query: str, limit: int = 25) -> list[MusicBrainzRecording]:
        """
        Search recordings by free text or Lucene query.

        Each hit carries the releases it appears on, so callers can derive
        album candidates from song searches.
        """
        params = {"query": query, "limit": str(limit), "inc": "releases+artist-credits"}
        data = await self._request("recording", params)
        return [parse_recording(rec) for rec in data.get("recordings", [])]

    async def search_artists(self, query: str, limit: int = 25) -> list[MusicBrainzArtist]:
        """Search artists by name."""
        params = {"query": query, "limit": str(limit)}
        data = await self._request("artist", params)
        return [
            MusicBrainzArtist(
                mbid=artist["id"],
                name=artist.get("name", ""),
                sort_name=artist.get("sort-name"),
                disambiguation=artist.get("disambiguation"),
            )
            for artist in data.get("artists", [])
        ]

    async def get_release(self, mbid: str) -> MusicBrainzRelease | None:
        """Get release by MBID, or None if the lookup fails."""
        try:
            data = await self._request(f"release/{mbid}", {"inc": "artist-credits"})
        except Exception as e:
            logger.error(f"Error fetching release {mbid}: {e}")
            return None
        return parse_release(data)

    async def get_recording(self, mbid: str) -> MusicBrainzRecording | None:
        """Get recording by MBID (with its releases), or None if the lookup fails."""
        try:
            data = await self._request(f"recording/{mbid}", {"inc": "releases+artist-credits"})
        except Exception as e:
            logger.error(f"Error fetching recording {mbid}: {e}")
            return None
        return parse_recording(data)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> MusicBrainzClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


## Tests


def test_parse_release_with_credit():
    release = parse_release(
        {
            "id": "rel-1",
            "title": "Thriller",
            "date": "1982-11-30",
            "artist-credit": [{"name": "Michael Jackson", "artist": {"id": "art-1"}}],
            "cover-art-archive": {"front": True},
        }
    )
    assert release.mbid == "rel-1"
    assert release.artist_name == "Michael Jackson"
    assert release.artist_mbid == "art-1"
    assert release.has_front_cover is True


def test_parse_recording_without_releases():
    recording = parse_recording({"id": "rec-1", "title": "Beat It"})
    assert recording.releases == []
    assert recording.artist_name is None


def test_musicbrainz_cache_key():
    """Test cache key generation."""
    client = MusicBrainzClient()
    params = {"query": "thriller", "fmt": "json"}
    key = client._make_cache_key(params)
    assert key == "fmt=json&query=thriller"
