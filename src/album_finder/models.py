"""
Value objects shared by the album search pipeline.

Everything here is created fresh per search call and never mutated afterwards:
the parser produces a ParsedQuery, each strategy produces a SearchResult, and
the aggregator produces the ranked Album list wrapped in a SearchOutcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from album_finder.musicbrainz import MusicBrainzRecording, MusicBrainzRelease

# Base confidence per strategy (0.0-1.0)
# Higher values indicate interpretations that are more likely what the user meant
CONFIDENCE_EXACT = 0.90  # Raw query straight against release search
CONFIDENCE_TITLE_ARTIST = 0.85  # Field-qualified title + artist
CONFIDENCE_SWAPPED_FACTOR = 0.8  # Discount when title/artist roles are swapped
CONFIDENCE_ARTIST_TITLE = CONFIDENCE_TITLE_ARTIST * CONFIDENCE_SWAPPED_FACTOR
CONFIDENCE_ARTIST_ONLY = 0.70
CONFIDENCE_TITLE_ONLY = 0.60
CONFIDENCE_FUZZY = 0.40  # Broad release + recording search

UNKNOWN_ARTIST = "Unknown Artist"
MB_WEB_BASE = "https://musicbrainz.org"


class SearchStrategy(StrEnum):
    """
    Closed set of query interpretations, ordered from most to least specific.

    Each strategy carries a fixed base confidence used for ranking.
    """

    EXACT = "exact"
    TITLE_ARTIST = "title_artist"
    ARTIST_TITLE = "artist_title"
    ARTIST_ONLY = "artist_only"
    TITLE_ONLY = "title_only"
    FUZZY = "fuzzy"

    @property
    def base_confidence(self) -> float:
        return _BASE_CONFIDENCE[self]


_BASE_CONFIDENCE: dict[SearchStrategy, float] = {
    SearchStrategy.EXACT: CONFIDENCE_EXACT,
    SearchStrategy.TITLE_ARTIST: CONFIDENCE_TITLE_ARTIST,
    SearchStrategy.ARTIST_TITLE: CONFIDENCE_ARTIST_TITLE,
    SearchStrategy.ARTIST_ONLY: CONFIDENCE_ARTIST_ONLY,
    SearchStrategy.TITLE_ONLY: CONFIDENCE_TITLE_ONLY,
    SearchStrategy.FUZZY: CONFIDENCE_FUZZY,
}


class SearchStatus(StrEnum):
    """Overall outcome of one search call."""

    MATCHED = "matched"
    NO_MATCHES = "no_matches"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    EMPTY_QUERY = "empty_query"


@dataclass(frozen=True)
class Album:
    """
    An album candidate.

    Identity is the backend release id; two albums with the same id are the
    same entity even when other fields differ.
    """

    id: str
    name: str
    artist_name: str = UNKNOWN_ARTIST
    artist_id: str = ""
    url: str = ""
    image_refs: tuple[str, ...] = ()
    release_date: str | None = None


@dataclass(frozen=True)
class AlbumRef:
    """Minimal reference from a track to the release it appears on."""

    id: str
    title: str


@dataclass(frozen=True)
class Track:
    """A recording as seen through the album search (only its first release matters)."""

    id: str
    name: str
    artist_name: str = UNKNOWN_ARTIST
    artist_id: str = ""
    album: AlbumRef | None = None
    url: str = ""
    image_refs: tuple[str, ...] = ()
    duration_ms: int | None = None


@dataclass(frozen=True)
class ParsedQuery:
    """Structured interpretation of a raw query plus the strategies to try, in order."""

    original: str
    terms: tuple[str, ...] = ()
    possible_artist: str | None = None
    possible_title: str | None = None
    search_strategies: tuple[SearchStrategy, ...] = ()


@dataclass(frozen=True)
class SearchResult:
    """Candidates produced by a single strategy."""

    candidates: tuple[Album, ...]
    strategy: SearchStrategy
    confidence: float
    failed: bool = False  # True when the backend raised


@dataclass(frozen=True)
class ScoredAlbum:
    """An album with its best final score across strategies."""

    album: Album
    score: float


@dataclass(frozen=True)
class SearchOutcome:
    """
    Final ranked albums plus provenance of how they were found.

    `status` separates "nothing matched" from "the backend could not be reached",
    which the bare album list cannot express.
    """

    ranked: tuple[ScoredAlbum, ...]
    status: SearchStatus
    strategies_run: tuple[SearchStrategy, ...] = field(default_factory=tuple)
    early_stopped: bool = False

    @property
    def albums(self) -> tuple[Album, ...]:
        return tuple(scored.album for scored in self.ranked)


def album_from_release(release: MusicBrainzRelease) -> Album:
    """Map a release search hit directly to an album candidate."""
    return Album(
        id=release.mbid,
        name=release.title,
        artist_name=release.artist_name or UNKNOWN_ARTIST,
        artist_id=release.artist_mbid or "",
        url=f"{MB_WEB_BASE}/release/{release.mbid}",
        image_refs=(release.mbid,),
        release_date=release.date,
    )


def track_from_recording(recording: MusicBrainzRecording) -> Track:
    """Map a recording to a track, keeping only its primary (first) release."""
    primary = recording.releases[0] if recording.releases else None
    return Track(
        id=recording.mbid,
        name=recording.title,
        artist_name=recording.artist_name or UNKNOWN_ARTIST,
        artist_id=recording.artist_mbid or "",
        album=AlbumRef(id=primary.mbid, title=primary.title) if primary else None,
        url=f"{MB_WEB_BASE}/recording/{recording.mbid}",
        image_refs=(primary.mbid,) if primary else (),
        duration_ms=recording.length_ms,
    )


def album_from_track(track: Track) -> Album | None:
    """Extract the album a track was released on, or None if it has none."""
    if track.album is None:
        return None
    return Album(
        id=track.album.id,
        name=track.album.title,
        artist_name=track.artist_name,
        artist_id=track.artist_id,
        url=f"{MB_WEB_BASE}/release/{track.album.id}",
        image_refs=(track.album.id,),
        release_date=None,
    )


def dedupe_albums(albums: list[Album]) -> list[Album]:
    """Drop repeated album ids, keeping the first occurrence in order."""
    unique: dict[str, Album] = {}
    for album in albums:
        if album.id not in unique:
            unique[album.id] = album
    return list(unique.values())


## Tests


def test_strategy_confidences():
    assert SearchStrategy.EXACT.base_confidence == 0.90
    assert SearchStrategy.TITLE_ARTIST.base_confidence == 0.85
    assert abs(SearchStrategy.ARTIST_TITLE.base_confidence - 0.68) < 1e-9
    assert SearchStrategy.ARTIST_ONLY.base_confidence == 0.70
    assert SearchStrategy.TITLE_ONLY.base_confidence == 0.60
    assert SearchStrategy.FUZZY.base_confidence == 0.40


def test_every_strategy_has_confidence():
    for strategy in SearchStrategy:
        assert 0.0 <= strategy.base_confidence <= 1.0


def test_dedupe_albums_keeps_first():
    first = Album(id="a", name="First")
    second = Album(id="a", name="Second")
    other = Album(id="b", name="Other")
    assert dedupe_albums([first, other, second]) == [first, other]
