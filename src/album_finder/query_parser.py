"""
Heuristic decomposition of free-text album queries.

The parser guesses which part of a query like "thriller michael jackson" is the
title and which is the artist, and decides which search strategies are worth
trying. It is a fixed set of syntactic rules, not a language model.
"""

from __future__ import annotations

import logging

from album_finder.models import ParsedQuery, SearchStrategy

logger = logging.getLogger(__name__)

# Separator phrases in priority order; the first one present wins
SEPARATORS = (" - ", " by ", " from ", " feat ", " ft ", " featuring ")

# Whitespace fallback: the trailing artist guess is 1-3 words and >= 3 characters
MAX_ARTIST_WORDS = 3
MIN_ARTIST_CHARS = 3

# Long queries: the last two words are taken as the artist
TRAILING_ARTIST_WORDS = 2


class QueryParser:
    """
    Turn raw query text into a ParsedQuery.

    Never raises; anything unusual degrades to fewer terms and fewer strategies.

    Example:
        parser = QueryParser()
        parsed = parser.parse("bohemian rhapsody by queen")
        parsed.possible_title   # "bohemian rhapsody"
        parsed.possible_artist  # "queen"
    """

    def __init__(self, separators: tuple[str, ...] = SEPARATORS):
        self.separators = separators

    def parse(self, raw_query: str) -> ParsedQuery:
        clean = (raw_query or "").strip().lower()
        terms = self.split_terms(clean)

        possible_title: str | None = None
        possible_artist: str | None = None
        strategies = [SearchStrategy.EXACT]

        if len(terms) >= 2:
            possible_title, possible_artist = self.identify_title_and_artist(terms)

            if possible_title and possible_artist:
                strategies += [SearchStrategy.TITLE_ARTIST, SearchStrategy.ARTIST_TITLE]

            strategies += [SearchStrategy.ARTIST_ONLY, SearchStrategy.TITLE_ONLY]

        strategies.append(SearchStrategy.FUZZY)

        parsed = ParsedQuery(
            original=raw_query or "",
            terms=tuple(terms),
            possible_artist=possible_artist,
            possible_title=possible_title,
            search_strategies=tuple(strategies),
        )
        logger.debug(
            f"Parsed '{raw_query}': terms={list(parsed.terms)} title={possible_title!r} "
            f"artist={possible_artist!r} strategies={[s.value for s in parsed.search_strategies]}"
        )
        return parsed

    def split_terms(self, query: str) -> list[str]:
        """
        Split a normalized query into terms.

        A separator phrase splits on all of its occurrences. Without one, short
        queries split into words and longer ones into (title, artist) at the
        first point where the remainder looks like an artist name.
        """
        for sep in self.separators:
            if sep in query:
                return [piece.strip() for piece in query.split(sep) if piece.strip()]

        words = query.split()
        if len(words) <= 2:
            return words

        for i in range(1, len(words)):
            remainder = words[i:]
            right = " ".join(remainder)
            if len(remainder) <= MAX_ARTIST_WORDS and len(right) >= MIN_ARTIST_CHARS:
                return [" ".join(words[:i]), right]

        return words

    def identify_title_and_artist(self, terms: list[str]) -> tuple[str | None, str | None]:
        """
        Guess (title, artist) from the terms.

        Two terms are taken positionally. With more, the last two words are the
        artist and the rest is the title.
        """
        if len(terms) == 2:
            return terms[0], terms[1]

        words = " ".join(terms).split()
        if len(words) >= TRAILING_ARTIST_WORDS + 1:
            title = " ".join(words[:-TRAILING_ARTIST_WORDS])
            artist = " ".join(words[-TRAILING_ARTIST_WORDS:])
            return title, artist

        return None, None
