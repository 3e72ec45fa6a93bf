"""Unit tests for reconciler.py."""

import shutil
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mvcredits.config import ReconcileConfig
from mvcredits.content_store import ContentStore, LocalCoverStore
from mvcredits.reconciler import (
    REASON_BAD_COVER,
    REASON_MALFORMED,
    REASON_MISSING_FIELDS,
    REASON_NO_MATCH,
    AuditStatus,
    Reconciler,
)
from mvcredits.records import ContentRecord, SourceRecord
from mvcredits.slug_matcher import MatchStrategy
from mvcredits.source_table import read_source_table

FIXTURES = Path(__file__).parent.parent / "fixtures"


def make_record(slug, artist, title, cover=""):
    return ContentRecord(
        slug=slug,
        title=title,
        artist=artist,
        video_url="https://www.youtube.com/watch?v=aaaaaaaaaaa",
        cover=cover,
    )


class TestReconciler:
    """Test cases for Reconciler."""

    @pytest.fixture
    def reconciler(self):
        """Create a reconciler without cover checks."""
        return Reconciler()

    def test_case_only_artist_difference_is_ok(self, reconciler):
        """Test that 'Idles' against 'IDLES' is not a mismatch."""
        entries = reconciler.reconcile(
            [SourceRecord(artist="Idles", title="Mother", year="2016")],
            [make_record("2016-idles-mother", "IDLES", "Mother")],
        )
        assert entries[0].status == AuditStatus.OK
        assert entries[0].matched_slug == "2016-idles-mother"

    def test_missing_fields_skip(self, reconciler):
        """Test that rows without artist or title are skipped."""
        entries = reconciler.reconcile([SourceRecord(artist="", title="Song", year="2016")], [])
        assert entries[0].status == AuditStatus.SKIP
        assert entries[0].reason == REASON_MISSING_FIELDS

    def test_missing(self, reconciler):
        """Test that unmatched rows are missing."""
        entries = reconciler.reconcile(
            [SourceRecord(artist="Radiohead", title="Daydreaming", year="2016")],
            [make_record("2016-idles-mother", "IDLES", "Mother")],
        )
        assert entries[0].status == AuditStatus.MISSING
        assert entries[0].strategy == MatchStrategy.NONE

    def test_mismatch_beats_suspicious_title(self, reconciler):
        """Test that an artist mismatch is reported before a suspicious title."""
        entries = reconciler.reconcile(
            [SourceRecord(artist="Jungle", title="Busy Earnin'", year="2016")],
            [make_record("2016-jungle-busy-earnin", "Jungle4eva", "Busy Earnin' (Audio)")],
        )
        entry = entries[0]
        assert entry.status == AuditStatus.MISMATCH
        assert entry.reason == 'Artist mismatch: source="Jungle" vs content="Jungle4eva"'
        assert entry.content_artist == "Jungle4eva"

    @pytest.mark.parametrize(
        "title,reason",
        [
            ("Lite Spots (Official Audio)", "Audio Only"),
            ("Lite Spots (Lyric Video)", "Lyric Video"),
            ("Lite Spots Visualizer", "Visualizer"),
            ("Lite Spots - Behind The Scenes", "BTS"),
        ],
    )
    def test_suspicious_title(self, reconciler, title, reason):
        """Test that non-video uploads are flagged."""
        entries = reconciler.reconcile(
            [SourceRecord(artist="Kaytranada", title="Lite Spots", year="2016")],
            [make_record("2016-kaytranada-lite-spots", "Kaytranada", title)],
        )
        assert entries[0].status == AuditStatus.SUSPICIOUS
        assert entries[0].reason == f"Title contains suspicious keyword: {reason}"

    def test_missing_cover_is_suspicious(self, tmp_path):
        """Test the cover check when a cover store is configured."""
        reconciler = Reconciler(cover_store=LocalCoverStore(tmp_path))
        record = make_record(
            "2016-kaytranada-lite-spots", "Kaytranada", "Lite Spots", "/covers/2016/kaytranada-lite-spots.jpg"
        )
        row = SourceRecord(artist="Kaytranada", title="Lite Spots", year="2016")

        entries = reconciler.reconcile([row], [record])
        assert entries[0].status == AuditStatus.SUSPICIOUS
        assert entries[0].reason == REASON_BAD_COVER

        cover = tmp_path / "covers" / "2016" / "kaytranada-lite-spots.jpg"
        cover.parent.mkdir(parents=True)
        cover.write_bytes(b"\xff\xd8\xff")
        assert reconciler.reconcile([row], [record])[0].status == AuditStatus.OK

    def test_cover_check_can_be_disabled(self, tmp_path):
        """Test the check_covers switch."""
        reconciler = Reconciler(
            cover_store=LocalCoverStore(tmp_path), config=ReconcileConfig(check_covers=False)
        )
        entries = reconciler.reconcile(
            [SourceRecord(artist="Kaytranada", title="Lite Spots", year="2016")],
            [make_record("2016-kaytranada-lite-spots", "Kaytranada", "Lite Spots")],
        )
        assert entries[0].status == AuditStatus.OK

    def test_fixture_tables(self, tmp_path):
        """Test a full reconciliation of the fixture table and content set."""
        content_dir = tmp_path / "videos"
        shutil.copytree(FIXTURES / "videos", content_dir)
        rows = read_source_table(FIXTURES / "data" / "2016.csv")
        records = ContentStore(content_dir).load_all().records

        entries = Reconciler().reconcile(rows, records)

        assert [e.status for e in entries] == [
            AuditStatus.OK,
            AuditStatus.OK,
            AuditStatus.MISMATCH,
            AuditStatus.MISSING,
            AuditStatus.SKIP,
        ]
        assert [e.source.line_number for e in entries] == [1, 2, 3, 4, 5]

    def test_unparseable_record_is_not_plain_missing(self, tmp_path):
        """Test that a row matching a broken content file says so."""
        content_dir = tmp_path / "videos"
        shutil.copytree(FIXTURES / "videos", content_dir)
        shutil.copy(FIXTURES / "videos" / "broken-record.mdx", content_dir / "2016-idles-mother.mdx")
        loaded = ContentStore(content_dir).load_all()
        row = SourceRecord(artist="Idles", title="Mother", year="2016")

        entries = Reconciler().reconcile([row], loaded.records, loaded.failed_slugs)

        entry = entries[0]
        assert entry.status == AuditStatus.MISSING
        assert entry.reason == REASON_MALFORMED
        assert entry.matched_slug == "2016-idles-mother"
        assert entry.strategy == MatchStrategy.EXACT

    def test_without_malformed_slugs_row_is_missing(self, reconciler):
        """Test that rows are plainly missing when no broken files are known."""
        entries = reconciler.reconcile([SourceRecord(artist="Idles", title="Mother", year="2016")], [])
        assert entries[0].reason == REASON_NO_MATCH
        assert entries[0].matched_slug is None

    def test_inputs_not_modified(self, reconciler):
        """Test that reconciliation does not touch the content records."""
        record = make_record("2016-jungle-busy-earnin", "Jungle4eva", "Busy Earnin'")
        reconciler.reconcile([SourceRecord(artist="Jungle", title="Busy Earnin'", year="2016")], [record])
        assert record.artist == "Jungle4eva"
