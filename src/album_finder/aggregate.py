"""Merge per-strategy candidate lists into one deduplicated, score-ranked list."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from album_finder.models import Album, ScoredAlbum

logger = logging.getLogger(__name__)

# A candidate at the bottom of its own list keeps at least 70% of the confidence
POSITION_PENALTY = 0.3


def position_score(position: int, total: int) -> float:
    """Discount for a candidate's rank within its own result set, in (0.7, 1.0]."""
    return 1.0 - (position / total) * POSITION_PENALTY


class ResultAggregator:
    """
    Rank albums across strategies by confidence x position score.

    Each album id keeps its best score; a later sighting replaces the stored
    album only with a strictly higher score. Ties in the output keep the order
    in which ids were first seen.
    """

    def score(self, results: Iterable[tuple[Sequence[Album], float]]) -> list[ScoredAlbum]:
        best: dict[str, ScoredAlbum] = {}

        for candidates, confidence in results:
            total = len(candidates)
            for position, album in enumerate(candidates):
                final = confidence * position_score(position, total)
                current = best.get(album.id)
                if current is None or final > current.score:
                    # dict keeps the key's first-insertion slot on update
                    best[album.id] = ScoredAlbum(album=album, score=final)

        # sorted() is stable, so equal scores stay in first-discovery order
        return sorted(best.values(), key=lambda scored: scored.score, reverse=True)

    def aggregate(self, results: Iterable[tuple[Sequence[Album], float]]) -> list[Album]:
        ranked = self.score(results)
        logger.debug(f"Aggregated {len(ranked)} unique albums")
        return [scored.album for scored in ranked]
