"""Unit tests for content_store.py."""

import shutil
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mvcredits.content_store import ContentStore, LocalCoverStore, slug_drift
from mvcredits.exceptions import SlugCollisionError
from mvcredits.records import ContentRecord

FIXTURES = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def store(tmp_path):
    """Create a store holding a copy of the fixture records."""
    content_dir = tmp_path / "videos"
    shutil.copytree(FIXTURES / "videos", content_dir)
    return ContentStore(content_dir)


class TestContentStore:
    """Test cases for ContentStore."""

    def test_list_slugs_sorted(self, store):
        """Test that slugs come back in file-name order."""
        assert store.list_slugs() == [
            "2016-idles-mother",
            "2016-jungle-busy-earnin",
            "2016-kaytranada-lite-spots",
            "broken-record",
        ]

    def test_load_all_reports_malformed(self, store):
        """Test that malformed files are reported, not dropped silently."""
        result = store.load_all()

        assert len(result.records) == 3
        assert len(result.failures) == 1
        assert "broken-record.mdx" in str(result.failures[0].path)
        assert result.failed_slugs == ["broken-record"]

    def test_load_all_missing_directory(self, tmp_path):
        """Test loading from a directory that does not exist."""
        result = ContentStore(tmp_path / "missing").load_all()
        assert result.records == []
        assert result.failures == []

    def test_find_video(self, store):
        """Test lookup of a record by video id."""
        assert store.find_video("BcsfftwLUf0") == "2016-jungle-busy-earnin"
        assert store.find_video("zzzzzzzzzzz") is None
        assert store.find_video("") is None

    def test_save_refuses_overwrite(self, store):
        """Test that save with overwrite=False keeps an existing file."""
        record = store.load("2016-idles-mother")
        with pytest.raises(SlugCollisionError):
            store.save(record, overwrite=False)

    def test_update_artist(self, store):
        """Test that the artist is written back."""
        store.update_artist("2016-jungle-busy-earnin", "Jungle")
        assert store.load("2016-jungle-busy-earnin").artist == "Jungle"

    def test_rename(self, store):
        """Test that rename moves the file and updates fields."""
        renamed = store.rename(
            "2016-jungle-busy-earnin", "2016-jungle-busy-earnin-2", artist="Jungle"
        )

        assert renamed.slug == "2016-jungle-busy-earnin-2"
        assert not store.exists("2016-jungle-busy-earnin")
        assert store.load("2016-jungle-busy-earnin-2").artist == "Jungle"

    def test_rename_refuses_existing_target(self, store):
        """Test that a rename never overwrites another record."""
        with pytest.raises(SlugCollisionError):
            store.rename("2016-jungle-busy-earnin", "2016-idles-mother")
        assert store.exists("2016-jungle-busy-earnin")
        assert store.load("2016-idles-mother").title == "Mother"


class TestSlugDrift:
    """Test cases for slug_drift."""

    def test_drift_detected(self):
        """Test a record whose slug no longer matches its fields."""
        record = ContentRecord(
            slug="2016-jungle4eva-busy-earnin", title="Busy Earnin'", artist="Jungle", video_url="u"
        )
        assert slug_drift(record) == "2016-jungle-busy-earnin"

    def test_no_drift(self):
        """Test a record with its canonical slug."""
        record = ContentRecord(
            slug="2016-jungle-busy-earnin", title="Busy Earnin'", artist="Jungle", video_url="u"
        )
        assert slug_drift(record) is None


class TestLocalCoverStore:
    """Test cases for LocalCoverStore."""

    def test_cover_path_from_field(self, tmp_path):
        """Test that a /covers/ value is used as the path."""
        record = ContentRecord(
            slug="2016-idles-mother",
            title="Mother",
            artist="IDLES",
            video_url="u",
            cover="/covers/2016/custom.jpg",
        )
        assert LocalCoverStore(tmp_path).cover_path(record) == tmp_path / "covers/2016/custom.jpg"

    def test_cover_path_convention(self, tmp_path):
        """Test the default location for remote cover URLs."""
        record = ContentRecord(
            slug="2016-idles-mother",
            title="Mother",
            artist="IDLES",
            video_url="u",
            cover="https://img.youtube.com/vi/x/maxresdefault.jpg",
        )
        assert LocalCoverStore(tmp_path).cover_path(record) == tmp_path / "covers/2016/idles-mother.jpg"

    def test_zero_length_cover_is_invalid(self, tmp_path):
        """Test that empty cover files do not count."""
        record = ContentRecord(
            slug="2016-idles-mother", title="Mother", artist="IDLES", video_url="u"
        )
        covers = LocalCoverStore(tmp_path)
        path = covers.cover_path(record)
        assert not covers.has_valid_cover(record)

        path.parent.mkdir(parents=True)
        path.write_bytes(b"")
        assert not covers.has_valid_cover(record)

        path.write_bytes(b"\xff\xd8 jpeg")
        assert covers.has_valid_cover(record)
