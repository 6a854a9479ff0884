from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field


class HttpCacheConfig(BaseModel):
    """HTTP cache configuration."""

    directory: Path = Field(default=Path(".cache/http"))
    ttl_seconds: int = Field(default=3600, ge=0)
    enabled: bool = Field(default=True)


class MusicBrainzConfig(BaseModel):
    """MusicBrainz and Cover Art Archive access."""

    base_url: str = Field(default="https://musicbrainz.org/ws/2")
    cover_art_base_url: str = Field(default="https://coverartarchive.org/release")
    user_agent: str = Field(
        default="album-finder/0.1.0 ( https://github.com/album-finder/album-finder )"
    )
    rate_limit: float = Field(default=1.0, ge=0)  # req/sec
    timeout_s: float = Field(default=30.0, ge=1.0)
    placeholder_image_url: str = Field(
        default="https://images.unsplash.com/photo-1493225457124-a3eb161ffa5f?w=500&h=500&fit=crop"
    )


class SearchConfig(BaseModel):
    """Album search tuning."""

    default_limit: int = Field(default=25, ge=0)

    # Stop trying strategies once one returns this many candidates at this confidence
    early_stop_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    early_stop_min_results: int = Field(default=5, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(message)s")


class Config(BaseModel):
    """
    Main configuration for album-finder.

    Loads from TOML file with optional environment variable overrides.
    """

    http_cache: HttpCacheConfig = Field(default_factory=HttpCacheConfig)
    musicbrainz: MusicBrainzConfig = Field(default_factory=MusicBrainzConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    offline_mode: bool = Field(default=False)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        ALBUM_FINDER_<SECTION>_<KEY> (e.g., ALBUM_FINDER_SEARCH_DEFAULT_LIMIT)

        All values are gathered into a single dictionary first, then validated
        by Pydantic to ensure consistent type checking and coercion.
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            config_dict = tomllib.loads(config_path.read_text())

        config_dict = cls._merge_env_overrides(config_dict)
        return cls.model_validate(config_dict)

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Every field of every section can be overridden; values stay strings and
        are coerced by Pydantic.
        """
        env_prefix = "ALBUM_FINDER_"

        if offline := os.getenv(f"{env_prefix}OFFLINE_MODE"):
            config_dict["offline_mode"] = offline.lower() in ("true", "1", "yes")

        for section_name, section_field in cls.model_fields.items():
            section_model = section_field.annotation
            if not (isinstance(section_model, type) and issubclass(section_model, BaseModel)):
                continue

            section = config_dict.setdefault(section_name, {})
            if not isinstance(section, dict):
                section = {}
                config_dict[section_name] = section

            for key in section_model.model_fields:
                env_name = f"{env_prefix}{section_name}_{key}".upper()
                if (value := os.getenv(env_name)) is not None:
                    section[key] = value

        return config_dict


## Tests


def test_config_defaults():
    config = Config()
    assert config.offline_mode is False
    assert config.http_cache.enabled is True
    assert config.musicbrainz.rate_limit == 1.0
    assert config.search.default_limit == 25
    assert config.search.early_stop_confidence == 0.8
    assert config.search.early_stop_min_results == 5


def test_config_from_dict():
    config = Config.model_validate(
        {
            "offline_mode": True,
            "http_cache": {"ttl_seconds": 60, "directory": "/tmp/cache"},
            "search": {"default_limit": 12},
        }
    )
    assert config.offline_mode is True
    assert config.http_cache.ttl_seconds == 60
    assert config.http_cache.directory == Path("/tmp/cache")
    assert config.search.default_limit == 12
