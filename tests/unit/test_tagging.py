"""Unit tests for tagging.py."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mvcredits.tagging import (
    EXACT_HOOK_TAGS,
    UNCATEGORIZED,
    decade_tag,
    default_tags,
    visual_hook_to_tags,
)


class TestVisualHookToTags:
    """Test cases for visual_hook_to_tags."""

    def test_exact_hook(self):
        """Test that a curated hook returns its tag set."""
        assert visual_hook_to_tags("Infinite Stop-Motion Loop") == [
            "stop-motion",
            "loop",
            "animation",
            "abstract",
        ]

    def test_exact_hook_ignores_surrounding_whitespace(self):
        """Test that hooks are trimmed before lookup."""
        assert visual_hook_to_tags("  Noir Social Realism ") == list(EXACT_HOOK_TAGS["Noir Social Realism"])

    def test_keyword_fallback(self):
        """Test keyword matching in table order."""
        assert visual_hook_to_tags("A surreal dance in the desert") == [
            "dance-choreography",
            "surreal",
            "desert",
        ]

    def test_keyword_groups_add_one_tag(self):
        """Test that several keywords of one group add the tag once."""
        assert visual_hook_to_tags("Dance dancing choreography") == ["dance-choreography"]

    @pytest.mark.parametrize("hook", [None, "", "   ", "Static portrait"])
    def test_uncategorized(self, hook):
        """Test hooks without any recognised keyword."""
        assert visual_hook_to_tags(hook) == [UNCATEGORIZED]

    def test_returns_copy(self):
        """Test that callers cannot modify the curated table."""
        tags = visual_hook_to_tags("Liquid Choreography")
        tags.append("extra")
        assert "extra" not in EXACT_HOOK_TAGS["Liquid Choreography"]


class TestDefaultTags:
    """Test cases for decade_tag and default_tags."""

    @pytest.mark.parametrize(
        "year,expected",
        [("2016", "2010s"), ("1999", "1990s"), ("2020-05-01", "2020s"), ("abcd", None), ("", None), (None, None)],
    )
    def test_decade_tag(self, year, expected):
        """Test decade derivation."""
        assert decade_tag(year) == expected

    def test_director_and_decade(self):
        """Test the director tag with decade context."""
        assert default_tags("Aidan Zamiri", "2016") == ["dir-aidan-zamiri", "2010s"]

    def test_long_director_slug_is_cut(self):
        """Test that director slugs are limited to twenty characters."""
        tags = default_tags("Martin C. Pariseau Jr. And Friends", "2016")
        assert tags[0] == "dir-" + "martin-c-pariseau-jr"

    def test_without_director(self):
        """Test that no director gives the uncategorized tag."""
        assert default_tags(None, "2016") == [UNCATEGORIZED]
        assert default_tags("", "2016") == [UNCATEGORIZED]

    def test_without_year(self):
        """Test a director tag without decade."""
        assert default_tags("Hiro Murai", None) == ["dir-hiro-murai"]
