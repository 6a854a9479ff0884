"""Builders and an in-memory backend shared by the search pipeline tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from album_finder.musicbrainz import (
    MusicBrainzRecording,
    MusicBrainzRelease,
    MusicBrainzReleaseRef,
)

# =============================================================================
# Entity Builders
# =============================================================================


def make_release(mbid: str, title: str = "", artist: str = "Artist") -> MusicBrainzRelease:
    return MusicBrainzRelease(
        mbid=mbid,
        title=title or f"Release {mbid}",
        artist_mbid=f"artist-{artist.lower()}",
        artist_name=artist,
        date="2000-01-01",
    )


def make_recording(
    mbid: str, release_ids: list[str], artist: str = "Artist"
) -> MusicBrainzRecording:
    return MusicBrainzRecording(
        mbid=mbid,
        title=f"Song {mbid}",
        artist_mbid=f"artist-{artist.lower()}",
        artist_name=artist,
        releases=[MusicBrainzReleaseRef(mbid=rid, title=f"Album {rid}") for rid in release_ids],
    )


# =============================================================================
# Fake Backend
# =============================================================================

ReleaseResponder = Callable[[str, int], list[MusicBrainzRelease]]
RecordingResponder = Callable[[str, int], list[MusicBrainzRecording]]


@dataclass
class FakeBackend:
    """
    In-memory SearchBackend that records every call.

    Responders receive (query, limit) and may raise to simulate backend failures.
    """

    releases: ReleaseResponder = lambda query, limit: []
    recordings: RecordingResponder = lambda query, limit: []
    release_calls: list[tuple[str, int]] = field(default_factory=list)
    recording_calls: list[tuple[str, int]] = field(default_factory=list)

    async def search_releases(self, query: str, limit: int = 25) -> list[MusicBrainzRelease]:
        self.release_calls.append((query, limit))
        return self.releases(query, limit)

    async def search_recordings(self, query: str, limit: int = 25) -> list[MusicBrainzRecording]:
        self.recording_calls.append((query, limit))
        return self.recordings(query, limit)

    @property
    def call_count(self) -> int:
        return len(self.release_calls) + len(self.recording_calls)


def failing(*args: object) -> list:
    raise ConnectionError("MusicBrainz unreachable")

