from __future__ import annotations

import hashlib
import json
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class CacheStats:
    """Snapshot of cache contents."""

    entries: int
    expired: int
    total_bytes: int


class HttpCache:
    """
    File-backed cache of decoded JSON responses with a SQLite index and TTL.

    Keys are full request URLs (query string included); bodies live in one file
    per entry named by the SHA256 of the key.
    """

    def __init__(self, cache_dir: Path, ttl_seconds: int = 86400):
        self.cache_dir = cache_dir
        self.ttl_seconds = ttl_seconds
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.db_path = self.cache_dir / "cache_index.sqlite"
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_entries (
                    url TEXT PRIMARY KEY,
                    cache_key TEXT NOT NULL,
                    cached_at REAL NOT NULL,
                    expires_at REAL NOT NULL,
                    size_bytes INTEGER NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_expires_at ON cache_entries(expires_at)")

    def _body_path(self, url: str) -> Path:
        return self.cache_dir / f"{hashlib.sha256(url.encode()).hexdigest()}.json"

    def get(self, url: str) -> Any | None:
        """Return the cached payload for `url`, or None if missing or expired."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT cache_key FROM cache_entries WHERE url = ? AND expires_at > ?",
                (url, time.time()),
            ).fetchone()

        if not row:
            return None

        body_path = self.cache_dir / row["cache_key"]
        if not body_path.exists():
            return None

        return json.loads(body_path.read_text(encoding="utf-8"))

    def put(self, url: str, payload: Any) -> None:
        """Store a JSON-serializable payload for `url`."""
        body_path = self._body_path(url)
        body = json.dumps(payload)
        body_path.write_text(body, encoding="utf-8")

        cached_at = time.time()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO cache_entries
                (url, cache_key, cached_at, expires_at, size_bytes)
                VALUES (?, ?, ?, ?, ?)
                """,
                (url, body_path.name, cached_at, cached_at + self.ttl_seconds, len(body)),
            )

    def invalidate(self, url: str) -> None:
        """Remove cache entry for specific URL."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT cache_key FROM cache_entries WHERE url = ?", (url,)
            ).fetchone()
            if row:
                (self.cache_dir / row["cache_key"]).unlink(missing_ok=True)
                conn.execute("DELETE FROM cache_entries WHERE url = ?", (url,))

    def purge_expired(self) -> int:
        """Remove expired cache entries and return count of removed entries."""
        now = time.time()
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT cache_key FROM cache_entries WHERE expires_at <= ?", (now,)
            ).fetchall()
            for row in rows:
                (self.cache_dir / row["cache_key"]).unlink(missing_ok=True)
            removed = conn.execute("DELETE FROM cache_entries WHERE expires_at <= ?", (now,))
            return removed.rowcount

    def clear(self) -> int:
        """Clear all cache entries and return how many were removed."""
        with self._connect() as conn:
            rows = conn.execute("SELECT cache_key FROM cache_entries").fetchall()
            for row in rows:
                (self.cache_dir / row["cache_key"]).unlink(missing_ok=True)
            conn.execute("DELETE FROM cache_entries")
            return len(rows)

    def stats(self) -> CacheStats:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS entries,
                       COALESCE(SUM(expires_at <= ?), 0) AS expired,
                       COALESCE(SUM(size_bytes), 0) AS total_bytes
                FROM cache_entries
                """,
                (time.time(),),
            ).fetchone()
        return CacheStats(
            entries=row["entries"], expired=row["expired"], total_bytes=row["total_bytes"]
        )


## Tests


def test_http_cache_roundtrip(tmp_path):
    cache = HttpCache(tmp_path / "cache", ttl_seconds=3600)
    url = "https://musicbrainz.org/ws/2/release?fmt=json&query=thriller"

    cache.put(url, {"releases": [{"id": "rel-1"}]})

    assert cache.get(url) == {"releases": [{"id": "rel-1"}]}
    assert cache.get(url + "&limit=5") is None


def test_http_cache_expired_entry(tmp_path):
    cache = HttpCache(tmp_path / "cache", ttl_seconds=0)
    url = "https://musicbrainz.org/ws/2/release?query=x"

    cache.put(url, {"releases": []})

    assert cache.get(url) is None
    assert cache.stats().expired == 1
    assert cache.purge_expired() == 1
    assert cache.stats().entries == 0


def test_http_cache_invalidate_and_clear(tmp_path):
    cache = HttpCache(tmp_path / "cache")
    cache.put("https://example.com/a", {"a": 1})
    cache.put("https://example.com/b", {"b": 2})

    cache.invalidate("https://example.com/a")
    assert cache.get("https://example.com/a") is None
    assert cache.get("https://example.com/b") == {"b": 2}

    assert cache.clear() == 1
    assert cache.stats().entries == 0
