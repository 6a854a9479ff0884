"""Pytest configuration and shared fixtures for album-finder tests."""

from __future__ import annotations

import pytest
from search_helpers import FakeBackend


@pytest.fixture
def fake_backend():
    """Provide an empty FakeBackend; tests replace its responders as needed."""
    return FakeBackend()


@pytest.fixture
def tmp_cache(tmp_path):
    """Provide a temporary HttpCache for tests."""
    from album_finder.http_cache import HttpCache

    return HttpCache(tmp_path / "cache")
