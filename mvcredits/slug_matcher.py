"""Slug generation and layered matching of source rows to content slugs.

A hand-maintained table and automatically generated slugs never agree
perfectly, so matching falls through progressively weaker layers:

1. exact                 ``{year}-{artist}-{title}`` exists verbatim
2. fuzzy-same-year       slug starts with ``{year}-{artist}`` and holds 60% of
                         the significant title words
3. fuzzy-year-tolerant   slug year within one year, artist slug contained
                         and 60% of the title words
4. fuzzy-title-only      slug year within one year and every title word
                         present (titles of two or more words only)

Within a layer the first qualifying slug in sorted order wins. This is not
the best-scoring candidate; see DESIGN.md before changing it, because a
best-match policy changes existing audit outcomes.

A title without significant words ("Go", "XO") can only match exactly;
the fuzzy layers need at least one title word in the slug.
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from .config import MatchingConfig

logger = logging.getLogger(__name__)

# ASCII word characters only, so existing slugs keep matching.
_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")
_SLUG_YEAR = re.compile(r"^(\d{4})-")
_NUMERIC_YEAR = re.compile(r"^[0-9]+$")


class MatchStrategy(Enum):
    """Layer of the cascade that produced a match."""

    EXACT = "exact"
    FUZZY_SAME_YEAR = "fuzzy-same-year"
    FUZZY_YEAR_TOLERANT = "fuzzy-year-tolerant"
    FUZZY_TITLE_ONLY = "fuzzy-title-only"
    NONE = "none"


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a slug lookup."""

    found: bool
    strategy: MatchStrategy
    slug: Optional[str] = None

    @classmethod
    def not_found(cls) -> "MatchResult":
        return cls(found=False, strategy=MatchStrategy.NONE)


def slugify(text: str) -> str:
    """Lowercase, drop everything but word characters, spaces and hyphens,
    then turn whitespace runs into single hyphens."""
    text = _NON_SLUG_CHARS.sub("", text.lower())
    return _WHITESPACE.sub("-", text)


def build_slug(year: str, artist: str, title: str) -> str:
    """Canonical slug of a record."""
    return f"{year}-{slugify(artist)}-{slugify(title)}"


def slug_year(slug: str) -> Optional[int]:
    match = _SLUG_YEAR.match(slug)
    return int(match.group(1)) if match else None


class SlugMatcher:
    """Find the content slug that corresponds to a source row."""

    def __init__(self, config: Optional[MatchingConfig] = None):
        self.config = config or MatchingConfig()

    def title_words(self, title: str) -> List[str]:
        """Significant words of the title slug."""
        return [w for w in slugify(title).split("-") if len(w) >= self.config.min_word_length]

    def _enough_words(self, words: Sequence[str], slug: str) -> bool:
        if not words:
            return False
        matched = sum(1 for word in words if word in slug)
        return matched >= math.ceil(len(words) * self.config.title_word_ratio)

    def _within_tolerance(self, slug: str, year: Optional[int]) -> bool:
        candidate_year = slug_year(slug)
        if year is None or candidate_year is None:
            return False
        return abs(candidate_year - year) <= self.config.year_tolerance

    def find_match(
        self, year: str, artist: str, title: str, existing_slugs: Iterable[str]
    ) -> MatchResult:
        """Match ``(year, artist, title)`` against ``existing_slugs``.

        Args:
            year: Year from the source row.
            artist: Artist from the source row.
            title: Title from the source row.
            existing_slugs: Slugs of the content set. Only read.

        Returns:
            MatchResult naming the matched slug and the layer that matched.
        """
        ordered = sorted(existing_slugs)
        slugs = set(ordered)

        artist_slug = slugify(artist)
        expected = build_slug(year, artist, title)
        if expected in slugs:
            logger.debug(f"exact match: {expected}")
            return MatchResult(True, MatchStrategy.EXACT, expected)

        words = self.title_words(title)

        prefix = f"{year}-{artist_slug}"
        for slug in ordered:
            if slug.startswith(prefix) and self._enough_words(words, slug):
                logger.info(f"fuzzy-same-year: '{artist} - {title}' ({year}) -> {slug}")
                return MatchResult(True, MatchStrategy.FUZZY_SAME_YEAR, slug)

        year_num = int(year) if _NUMERIC_YEAR.match(year.strip()) else None
        if year_num is None:
            logger.debug(f"Year '{year}' is not numeric, skipping year-tolerant layers")
            return MatchResult.not_found()

        for slug in ordered:
            if (
                self._within_tolerance(slug, year_num)
                and artist_slug in slug
                and self._enough_words(words, slug)
            ):
                logger.info(f"fuzzy-year-tolerant: '{artist} - {title}' ({year}) -> {slug}")
                return MatchResult(True, MatchStrategy.FUZZY_YEAR_TOLERANT, slug)

        if len(words) >= self.config.title_only_min_words:
            for slug in ordered:
                if self._within_tolerance(slug, year_num) and all(w in slug for w in words):
                    logger.info(f"fuzzy-title-only: '{artist} - {title}' ({year}) -> {slug}")
                    return MatchResult(True, MatchStrategy.FUZZY_TITLE_ONLY, slug)

        logger.debug(f"no match: '{artist} - {title}' ({year})")
        return MatchResult.not_found()
