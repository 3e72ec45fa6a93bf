"""Unit tests for slug_matcher.py."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mvcredits.config import MatchingConfig
from mvcredits.slug_matcher import MatchStrategy, SlugMatcher, build_slug, slug_year, slugify


class TestSlugify:
    """Test cases for slug helpers."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Lite Spots", "lite-spots"),
            ("Busy Earnin'", "busy-earnin"),
            ("A$AP Rocky", "aap-rocky"),
            ("Fontaines D.C.", "fontaines-dc"),
            ("Day  &  Night", "day-night"),
        ],
    )
    def test_slugify(self, text, expected):
        """Test slug conversion."""
        assert slugify(text) == expected

    def test_build_slug(self):
        """Test the {year}-{artist}-{title} layout."""
        assert build_slug("2016", "Kaytranada", "Lite Spots") == "2016-kaytranada-lite-spots"

    def test_build_slug_is_deterministic(self):
        """Test that equal inputs give equal slugs."""
        assert build_slug("2018", "IDLES", "Danny Nedelko") == build_slug(
            "2018", "IDLES", "Danny Nedelko"
        )

    def test_slug_year(self):
        """Test year extraction from a slug."""
        assert slug_year("2016-kaytranada-lite-spots") == 2016
        assert slug_year("kaytranada-lite-spots") is None


class TestSlugMatcher:
    """Test cases for SlugMatcher."""

    @pytest.fixture
    def matcher(self):
        """Create a matcher with default thresholds."""
        return SlugMatcher()

    def test_exact(self, matcher):
        """Test the exact layer."""
        result = matcher.find_match(
            "2016", "Kaytranada", "Lite Spots", {"2016-kaytranada-lite-spots", "2016-other-song"}
        )
        assert result.found
        assert result.strategy == MatchStrategy.EXACT
        assert result.slug == "2016-kaytranada-lite-spots"

    def test_year_tolerant(self, matcher):
        """Test a slug one year off with extra title words."""
        result = matcher.find_match(
            "2016", "Kaytranada", "Lite Spots", {"2017-kaytranada-lite-spots-extended-mix"}
        )
        assert result.found
        assert result.strategy == MatchStrategy.FUZZY_YEAR_TOLERANT
        assert result.slug == "2017-kaytranada-lite-spots-extended-mix"

    def test_same_year(self, matcher):
        """Test a same-year slug with a longer title."""
        result = matcher.find_match(
            "2019", "FKA twigs", "Cellophane", {"2019-fka-twigs-cellophane-official-video"}
        )
        assert result.strategy == MatchStrategy.FUZZY_SAME_YEAR

    def test_title_only(self, matcher):
        """Test the title-only layer for a differently spelled artist."""
        result = matcher.find_match(
            "2018", "Childish Gambino", "This Is America", {"2018-gambinoarchive-this-is-america"}
        )
        assert result.found
        assert result.strategy == MatchStrategy.FUZZY_TITLE_ONLY

    def test_title_only_needs_two_words(self, matcher):
        """Test that single-word titles never match on title alone."""
        result = matcher.find_match("2016", "Jungle", "Busy", {"2016-fanarchive-busy"})
        assert not result.found
        assert result.strategy == MatchStrategy.NONE

    def test_title_without_significant_words(self, matcher):
        """Test that a title of short words only matches exactly."""
        slugs = {"2016-junglepussy-bling", "2017-jungle-happy-man"}
        result = matcher.find_match("2016", "Jungle", "Go", slugs)
        assert not result.found

        exact = matcher.find_match("2016", "Jungle", "Go", slugs | {"2016-jungle-go"})
        assert exact.strategy == MatchStrategy.EXACT
        assert exact.slug == "2016-jungle-go"

    def test_year_outside_tolerance(self, matcher):
        """Test that slugs two years off are not matched."""
        result = matcher.find_match(
            "2016", "Kaytranada", "Lite Spots", {"2018-kaytranada-lite-spots"}
        )
        assert not result.found

    def test_non_numeric_year_skips_tolerant_layers(self, matcher):
        """Test that a non-numeric year only allows exact and same-year matches."""
        result = matcher.find_match(
            "n/a", "Kaytranada", "Lite Spots", {"2016-kaytranada-lite-spots"}
        )
        assert not result.found

    def test_first_sorted_slug_wins(self, matcher):
        """Test that ties resolve to the first slug in sorted order."""
        slugs = ["2016-kaytranada-lite-spots-b", "2016-kaytranada-lite-spots-a"]
        result = matcher.find_match("2016", "Kaytranada", "Lite Spots (Live)", slugs)
        assert result.slug == "2016-kaytranada-lite-spots-a"

    def test_existing_slugs_not_modified(self, matcher):
        """Test that the slug set is only read."""
        slugs = {"2016-kaytranada-lite-spots"}
        matcher.find_match("2016", "Kaytranada", "Lite Spots", slugs)
        assert slugs == {"2016-kaytranada-lite-spots"}

    def test_word_ratio_config(self):
        """Test that a stricter ratio rejects partial title matches."""
        strict = SlugMatcher(MatchingConfig(title_word_ratio=1.0))
        slugs = {"2016-radiohead-daydreaming-radio"}
        assert not strict.find_match("2016", "Radiohead", "Daydreaming (Radio Edit)", slugs).found
        assert SlugMatcher().find_match("2016", "Radiohead", "Daydreaming (Radio Edit)", slugs).found

    def test_empty_slug_set(self, matcher):
        """Test matching against an empty content set."""
        assert not matcher.find_match("2016", "Kaytranada", "Lite Spots", set()).found
