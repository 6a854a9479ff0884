__all__ = (
    "app",
    "Config",
    "HttpCache",
    "MusicBrainzClient",
    "SearchBackend",
    "CoverArtResolver",
    # Search pipeline
    "AlbumSearcher",
    "QueryParser",
    "StrategyExecutor",
    "ResultAggregator",
    # Value objects
    "Album",
    "ParsedQuery",
    "ScoredAlbum",
    "SearchOutcome",
    "SearchResult",
    "SearchStatus",
    "SearchStrategy",
)

from album_finder.aggregate import ResultAggregator
from album_finder.cli import app
from album_finder.config import Config
from album_finder.coverart import CoverArtResolver
from album_finder.http_cache import HttpCache
from album_finder.models import (
    Album,
    ParsedQuery,
    ScoredAlbum,
    SearchOutcome,
    SearchResult,
    SearchStatus,
    SearchStrategy,
)
from album_finder.musicbrainz import MusicBrainzClient, SearchBackend
from album_finder.query_parser import QueryParser
from album_finder.search import AlbumSearcher
from album_finder.strategies import StrategyExecutor
