"""Unit tests for repair.py."""

import shutil
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mvcredits.content_store import ContentStore
from mvcredits.quality_auditor import Issue, Severity, audit_record
from mvcredits.reconciler import AuditEntry, AuditStatus
from mvcredits.records import ContentRecord, CreditRecord, SourceRecord
from mvcredits.repair import (
    RenamePlan,
    apply_repairs,
    clear_corrupted_credits,
    plan_artist_alignments,
    plan_renames,
)
from mvcredits.slug_matcher import MatchStrategy

FIXTURES = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def store(tmp_path):
    """Create a store holding a copy of the fixture records."""
    content_dir = tmp_path / "videos"
    shutil.copytree(FIXTURES / "videos", content_dir)
    return ContentStore(content_dir)


def entry(status, artist, title, slug, content_artist, strategy=MatchStrategy.EXACT, year="2016"):
    return AuditEntry(
        status,
        "",
        SourceRecord(artist=artist, title=title, year=year),
        matched_slug=slug,
        strategy=strategy,
        content_artist=content_artist,
    )


class TestPlanArtistAlignments:
    """Test cases for plan_artist_alignments."""

    def test_mismatch_only_by_default(self):
        """Test that case-only differences are left alone by default."""
        entries = [
            entry(AuditStatus.MISMATCH, "Jungle", "Busy Earnin'", "2016-jungle-busy-earnin", "Jungle4eva"),
            entry(AuditStatus.OK, "Idles", "Mother", "2016-idles-mother", "IDLES"),
        ]
        alignments = plan_artist_alignments(entries)
        assert [(a.slug, a.expected_artist) for a in alignments] == [
            ("2016-jungle-busy-earnin", "Jungle")
        ]

    def test_exact_case(self):
        """Test that exact_case also aligns capitalisation."""
        entries = [entry(AuditStatus.OK, "Idles", "Mother", "2016-idles-mother", "IDLES")]
        alignments = plan_artist_alignments(entries, exact_case=True)
        assert alignments[0].current_artist == "IDLES"
        assert alignments[0].expected_artist == "Idles"

    def test_one_alignment_per_slug(self):
        """Test that a record matched twice is aligned once."""
        row = entry(AuditStatus.MISMATCH, "Jungle", "Busy Earnin'", "2016-jungle-busy-earnin", "Jungle4eva")
        assert len(plan_artist_alignments([row, row])) == 1


class TestPlanRenames:
    """Test cases for plan_renames."""

    def test_fuzzy_match_renamed(self):
        """Test that a fuzzy match is renamed to the canonical slug."""
        entries = [
            entry(
                AuditStatus.OK,
                "Kaytranada",
                "Lite Spots",
                "2017-kaytranada-lite-spots-extended-mix",
                "Kaytranada",
                strategy=MatchStrategy.FUZZY_YEAR_TOLERANT,
            )
        ]
        plan = plan_renames(entries, ["2017-kaytranada-lite-spots-extended-mix"])
        assert plan.renames == [
            RenamePlan(
                "2017-kaytranada-lite-spots-extended-mix",
                "2016-kaytranada-lite-spots",
                "Kaytranada",
                "Lite Spots",
            )
        ]

    def test_exact_matches_not_renamed(self):
        """Test that exact matches are left in place."""
        entries = [entry(AuditStatus.OK, "Idles", "Mother", "2016-idles-mother", "IDLES")]
        assert plan_renames(entries, ["2016-idles-mother"]).renames == []

    def test_collision_refused(self):
        """Test that a rename onto an existing slug is refused."""
        entries = [
            entry(
                AuditStatus.OK,
                "Kaytranada",
                "Lite Spots",
                "2017-kaytranada-lite-spots-extended-mix",
                "Kaytranada",
                strategy=MatchStrategy.FUZZY_YEAR_TOLERANT,
            )
        ]
        plan = plan_renames(
            entries, ["2017-kaytranada-lite-spots-extended-mix", "2016-kaytranada-lite-spots"]
        )
        assert plan.renames == []
        assert len(plan.collisions) == 1

    def test_unparseable_match_not_renamed(self):
        """Test that a missing row pointing at a broken file is left alone."""
        entries = [
            entry(
                AuditStatus.MISSING,
                "Idles",
                "Mother",
                "2016-idles-mother-live",
                None,
                strategy=MatchStrategy.FUZZY_SAME_YEAR,
            )
        ]
        assert plan_renames(entries, ["2016-idles-mother-live"]).renames == []


class TestApplyRepairs:
    """Test cases for apply_repairs."""

    def test_dry_run_changes_nothing(self, store):
        """Test that a dry run only counts."""
        entries = [
            entry(AuditStatus.MISMATCH, "Jungle", "Busy Earnin'", "2016-jungle-busy-earnin", "Jungle4eva")
        ]
        summary = apply_repairs(store, plan_artist_alignments(entries), [], dry_run=True)

        assert summary.aligned == 1
        assert summary.dry_run
        assert store.load("2016-jungle-busy-earnin").artist == "Jungle4eva"

    def test_apply(self, store):
        """Test that alignments and renames are written."""
        entries = [
            entry(AuditStatus.MISMATCH, "Jungle", "Busy Earnin'", "2016-jungle-busy-earnin", "Jungle4eva")
        ]
        renames = [RenamePlan("2016-idles-mother", "2016-idles-mother-live", "IDLES", "Mother (Live)")]
        summary = apply_repairs(store, plan_artist_alignments(entries), renames, dry_run=False)

        assert summary.aligned == 1
        assert summary.renamed == 1
        assert store.load("2016-jungle-busy-earnin").artist == "Jungle"
        assert store.load("2016-idles-mother-live").title == "Mother (Live)"
        assert not store.exists("2016-idles-mother")

    def test_rename_collision_skipped(self, store):
        """Test that a rename onto an existing file is skipped, not applied."""
        renames = [RenamePlan("2016-idles-mother", "2016-kaytranada-lite-spots", "IDLES", "Mother")]
        summary = apply_repairs(store, [], renames, dry_run=False)

        assert summary.skipped == 1
        assert store.load("2016-kaytranada-lite-spots").artist == "Kaytranada"

    def test_missing_file_is_error(self, store):
        """Test that a vanished record is reported as an error."""
        entries = [entry(AuditStatus.MISMATCH, "Nobody", "Nothing", "2016-nobody-nothing", "X")]
        summary = apply_repairs(store, plan_artist_alignments(entries), [], dry_run=False)
        assert summary.aligned == 0
        assert len(summary.errors) == 1


class TestClearCorruptedCredits:
    """Test cases for clear_corrupted_credits."""

    def test_clears_critical_and_error_fields(self):
        """Test that only credit fields with severe issues are emptied."""
        record = ContentRecord(
            slug="2016-a",
            title="A",
            artist="B",
            video_url="u",
            curator_note="note",
            credits=CreditRecord(director="- Aidan Zamiri", production="ulse Films", label="XL"),
        )
        cleared = clear_corrupted_credits(record, audit_record(record))

        assert cleared == ["director", "production"]
        assert record.credits == CreditRecord(label="XL")

    def test_warnings_kept(self):
        """Test that warnings do not clear a field."""
        record = ContentRecord(
            slug="2016-a", title="A", artist="B", video_url="u",
            credits=CreditRecord(production="Studio: Pulse Films"),
        )
        issues = [Issue("production", Severity.WARNING, "organization-prefix")]
        assert clear_corrupted_credits(record, issues) == []
        assert record.credits.production == "Studio: Pulse Films"
