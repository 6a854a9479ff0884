"""Tests for the MusicBrainz client with HTTP mocked by pytest-httpx."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from album_finder.musicbrainz import MusicBrainzClient, MusicBrainzOfflineError

RELEASE_SEARCH = {
    "releases": [
        {
            "id": "rel-1",
            "title": "Thriller",
            "date": "1982-11-30",
            "country": "US",
            "artist-credit": [{"name": "Michael Jackson", "artist": {"id": "art-1"}}],
        },
        {"id": "rel-2", "title": "Thriller 25"},
    ]
}

RECORDING_SEARCH = {
    "recordings": [
        {
            "id": "rec-1",
            "title": "Beat It",
            "length": 258000,
            "artist-credit": [{"name": "Michael Jackson", "artist": {"id": "art-1"}}],
            "releases": [
                {"id": "rel-1", "title": "Thriller"},
                {"id": "rel-9", "title": "Number Ones"},
            ],
        }
    ]
}


def client_call(coro_factory, **client_kwargs):
    """Run `coro_factory(client)` against a fresh client without rate limiting."""

    async def _run():
        async with MusicBrainzClient(rate_limit_per_sec=0, **client_kwargs) as client:
            return await coro_factory(client)

    return asyncio.run(_run())


def test_search_releases(httpx_mock):
    httpx_mock.add_response(json=RELEASE_SEARCH)

    releases = client_call(lambda c: c.search_releases('release:"thriller"', limit=5))

    assert [r.mbid for r in releases] == ["rel-1", "rel-2"]
    assert releases[0].artist_name == "Michael Jackson"
    assert releases[0].artist_mbid == "art-1"
    assert releases[0].date == "1982-11-30"
    assert releases[1].artist_name is None

    request = httpx_mock.get_request()
    assert request.url.path == "/ws/2/release"
    assert request.url.params["query"] == 'release:"thriller"'
    assert request.url.params["limit"] == "5"
    assert request.url.params["fmt"] == "json"
    assert request.headers["User-Agent"].startswith("album-finder/")


def test_search_recordings_carries_releases(httpx_mock):
    httpx_mock.add_response(json=RECORDING_SEARCH)

    recordings = client_call(lambda c: c.search_recordings("beat it", limit=3))

    (recording,) = recordings
    assert recording.title == "Beat It"
    assert recording.length_ms == 258000
    assert [r.mbid for r in recording.releases] == ["rel-1", "rel-9"]
    assert httpx_mock.get_request().url.path == "/ws/2/recording"


def test_search_artists(httpx_mock):
    httpx_mock.add_response(
        json={"artists": [{"id": "art-1", "name": "Queen", "sort-name": "Queen"}]}
    )

    artists = client_call(lambda c: c.search_artists("queen"))

    assert artists[0].name == "Queen"
    assert artists[0].sort_name == "Queen"


def test_custom_base_url_and_user_agent(httpx_mock):
    httpx_mock.add_response(json={"releases": []})

    client_call(
        lambda c: c.search_releases("x"),
        base_url="http://mb.local/ws/2/",
        user_agent="test-agent/1.0",
    )

    request = httpx_mock.get_request()
    assert request.url.host == "mb.local"
    assert request.headers["User-Agent"] == "test-agent/1.0"


def test_http_error_propagates_from_search(httpx_mock):
    httpx_mock.add_response(status_code=503)

    with pytest.raises(httpx.HTTPStatusError):
        client_call(lambda c: c.search_releases("thriller"))


def test_lookup_failure_returns_none(httpx_mock):
    httpx_mock.add_response(status_code=404)

    assert client_call(lambda c: c.get_release("missing")) is None


def test_get_recording(httpx_mock):
    httpx_mock.add_response(json=RECORDING_SEARCH["recordings"][0])

    recording = client_call(lambda c: c.get_recording("rec-1"))

    assert recording is not None
    assert recording.releases[0].title == "Thriller"
    assert httpx_mock.get_request().url.path == "/ws/2/recording/rec-1"


def test_cache_serves_repeated_search(httpx_mock, tmp_cache):
    httpx_mock.add_response(json=RELEASE_SEARCH)

    async def twice(client):
        first = await client.search_releases("thriller", limit=5)
        second = await client.search_releases("thriller", limit=5)
        return first, second

    first, second = client_call(twice, cache=tmp_cache)

    assert first == second
    assert len(httpx_mock.get_requests()) == 1
    assert tmp_cache.stats().entries == 1


def test_offline_without_cache_entry_raises():
    with pytest.raises(MusicBrainzOfflineError):
        client_call(lambda c: c.search_releases("thriller"), offline=True)


def test_offline_serves_cached_response(httpx_mock, tmp_cache):
    httpx_mock.add_response(json=RELEASE_SEARCH)
    client_call(lambda c: c.search_releases("thriller"), cache=tmp_cache)

    releases = client_call(lambda c: c.search_releases("thriller"), cache=tmp_cache, offline=True)

    assert [r.mbid for r in releases] == ["rel-1", "rel-2"]
    assert len(httpx_mock.get_requests()) == 1


def test_rate_limit_spaces_requests(httpx_mock):
    httpx_mock.add_response(json={"releases": []})
    httpx_mock.add_response(json={"releases": []})

    async def two_requests():
        async with MusicBrainzClient(rate_limit_per_sec=20) as client:
            loop = asyncio.get_running_loop()
            start = loop.time()
            await client.search_releases("a")
            await client.search_releases("b")
            return loop.time() - start

    elapsed = asyncio.run(two_requests())

    assert elapsed >= 0.04
