"""
Cover Art Archive URL resolution for album candidates.

Only URLs are produced here; image bytes are never fetched or inspected. The
album's first image ref is the release id the archive is keyed by.
"""

from __future__ import annotations

import logging
from typing import Literal

import httpx

from album_finder.models import Album

logger = logging.getLogger(__name__)

CAA_BASE_URL = "https://coverartarchive.org/release"
PLACEHOLDER_IMAGE_URL = (
    "https://images.unsplash.com/photo-1493225457124-a3eb161ffa5f?w=500&h=500&fit=crop"
)

ArtSize = Literal["small", "large"]


class CoverArtResolver:
    """Map release ids to display and high-resolution artwork URLs."""

    def __init__(
        self,
        base_url: str = CAA_BASE_URL,
        placeholder_url: str = PLACEHOLDER_IMAGE_URL,
        timeout_s: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.placeholder_url = placeholder_url
        self.timeout_s = timeout_s

    def cover_art_url(self, release_id: str, size: ArtSize = "large") -> str:
        base = f"{self.base_url}/{release_id}/front"
        return f"{base}-250.jpg" if size == "small" else f"{base}.jpg"

    def image_url(self, album: Album) -> str:
        """Display-resolution art, or the placeholder when the album has no image ref."""
        if not album.image_refs:
            return self.placeholder_url
        return self.cover_art_url(album.image_refs[0], "large")

    def high_quality_image_url(self, album: Album) -> str | None:
        if not album.image_refs:
            return None
        return self.cover_art_url(album.image_refs[0], "large")

    async def has_cover_art(self, release_id: str) -> bool:
        """Check whether the archive has any art for `release_id` (False on any error)."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, follow_redirects=True) as client:
                response = await client.head(f"{self.base_url}/{release_id}")
        except httpx.HTTPError as e:
            logger.debug(f"Cover art check failed for {release_id}: {e}")
            return False
        return response.is_success


## Tests


def test_cover_art_sizes():
    resolver = CoverArtResolver()
    assert resolver.cover_art_url("rel-1", "small") == f"{CAA_BASE_URL}/rel-1/front-250.jpg"
    assert resolver.cover_art_url("rel-1") == f"{CAA_BASE_URL}/rel-1/front.jpg"


def test_placeholder_without_image_refs():
    resolver = CoverArtResolver(placeholder_url="https://example.com/none.png")
    album = Album(id="rel-1", name="Thriller")
    assert resolver.image_url(album) == "https://example.com/none.png"
    assert resolver.high_quality_image_url(album) is None
