"""Test configuration precedence: CLI > Env > TOML > Defaults."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from album_finder.cli import app
from album_finder.config import Config

TOML_CONTENT = """
offline_mode = false

[http_cache]
directory = "/custom/cache"
ttl_seconds = 7200
enabled = false

[musicbrainz]
base_url = "http://mb.local/ws/2"
rate_limit = 0.5

[search]
default_limit = 12
early_stop_min_results = 3

[logging]
level = "DEBUG"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "album-finder.toml"
    path.write_text(TOML_CONTENT)
    return path


def test_toml_loading(config_file):
    """Test that TOML configuration is loaded correctly."""
    config = Config.load(config_file)

    assert config.http_cache.directory == Path("/custom/cache")
    assert config.http_cache.ttl_seconds == 7200
    assert config.http_cache.enabled is False

    assert config.musicbrainz.base_url == "http://mb.local/ws/2"
    assert config.musicbrainz.rate_limit == 0.5

    assert config.search.default_limit == 12
    assert config.search.early_stop_min_results == 3
    # Unset keys keep their defaults
    assert config.search.early_stop_confidence == 0.8

    assert config.logging.level == "DEBUG"


def test_missing_file_gives_defaults(tmp_path):
    config = Config.load(tmp_path / "does-not-exist.toml")

    assert config == Config()


def test_env_overrides_toml(monkeypatch, config_file):
    """Test that environment variables override TOML configuration."""
    monkeypatch.setenv("ALBUM_FINDER_HTTP_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("ALBUM_FINDER_SEARCH_DEFAULT_LIMIT", "5")
    monkeypatch.setenv("ALBUM_FINDER_MUSICBRAINZ_RATE_LIMIT", "2")

    config = Config.load(config_file)

    assert config.http_cache.ttl_seconds == 60
    assert config.search.default_limit == 5
    assert config.musicbrainz.rate_limit == 2.0
    # Not overridden
    assert config.http_cache.directory == Path("/custom/cache")


def test_env_overrides_without_toml(monkeypatch):
    monkeypatch.setenv("ALBUM_FINDER_OFFLINE_MODE", "yes")
    monkeypatch.setenv("ALBUM_FINDER_HTTP_CACHE_ENABLED", "false")

    config = Config.load(None)

    assert config.offline_mode is True
    assert config.http_cache.enabled is False


def test_invalid_env_value_rejected(monkeypatch):
    monkeypatch.setenv("ALBUM_FINDER_SEARCH_DEFAULT_LIMIT", "many")

    with pytest.raises(ValueError):
        Config.load(None)


def test_cli_overrides_env(monkeypatch, tmp_path, config_file):
    """CLI options win over both environment and TOML."""
    monkeypatch.setenv("ALBUM_FINDER_HTTP_CACHE_TTL_SECONDS", "60")
    cache_dir = tmp_path / "cli-cache"

    result = CliRunner().invoke(
        app,
        [
            "--config",
            str(config_file),
            "--cache-dir",
            str(cache_dir),
            "--cache-ttl",
            "10",
            "-o",
            "json",
            "cache",
            "status",
        ],
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["directory"] == str(cache_dir)
    assert data["ttl_seconds"] == 10
