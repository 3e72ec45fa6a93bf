"""Unit tests for quality_auditor.py."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from mvcredits.quality_auditor import (
    QUALITY_RULES,
    Severity,
    audit_record,
    audit_records,
    count_by_severity,
)
from mvcredits.records import ContentRecord, CreditRecord


def make_record(**overrides):
    fields = dict(
        slug="2016-kaytranada-lite-spots",
        title="Lite Spots",
        artist="Kaytranada",
        video_url="https://www.youtube.com/watch?v=oKJ2gM3gXEk",
        publish_date="2016-04-27",
        curator_note="Stop-motion loop.",
        credits=CreditRecord(director="Aidan Zamiri"),
    )
    fields.update(overrides)
    return ContentRecord(**fields)


def rules_of(issues):
    return {(issue.field, issue.rule) for issue in issues}


class TestAuditRecord:
    """Test cases for audit_record."""

    def test_clean_record(self):
        """Test that a clean record has no issues."""
        assert audit_record(make_record()) == []

    def test_missing_first_letter_is_critical(self):
        """Test that a lowercase-start credit is flagged critical."""
        issues = audit_record(make_record(credits=CreditRecord(director="idan Zamiri")))
        assert ("director", "missing-first-letter") in rules_of(issues)
        assert issues[0].severity == Severity.CRITICAL

    def test_leading_punctuation(self):
        """Test that a leading dash is an error."""
        issues = audit_record(make_record(credits=CreditRecord(director="- Aidan Zamiri")))
        assert rules_of(issues) == {("director", "leading-punctuation")}
        assert issues[0].severity == Severity.ERROR

    def test_social_handle(self):
        """Test that @handles in crew fields are errors."""
        issues = audit_record(make_record(credits=CreditRecord(director="Aidan Zamiri @aidanzamiri")))
        assert rules_of(issues) == {("director", "social-handle")}

    def test_role_prefix(self):
        """Test that another role's label inside a credit is an error."""
        issues = audit_record(
            make_record(credits=CreditRecord(director="Aidan Zamiri Editor: Neal Farmer"))
        )
        assert ("director", "role-prefix") in rules_of(issues)

    def test_one_field_can_trigger_several_rules(self):
        """Test that rules are not exclusive."""
        issues = audit_record(
            make_record(credits=CreditRecord(production="Studio: Pulse Films @pulse"))
        )
        assert rules_of(issues) == {("production", "organization-prefix")}
        issues = audit_record(make_record(extra={"vfx": "Studio: Mill @themill"}))
        assert rules_of(issues) == {("vfx", "organization-prefix"), ("vfx", "social-handle")}

    def test_extra_crew_fields_are_checked(self):
        """Test that unmanaged crew keys are audited too."""
        issues = audit_record(make_record(extra={"editor": "eal Farmer"}))
        assert rules_of(issues) == {("editor", "missing-first-letter")}

    def test_title_separator(self):
        """Test that a dash separator in the title is a warning."""
        issues = audit_record(make_record(title="Kaytranada - Lite Spots"))
        assert rules_of(issues) == {("title", "title-has-separator")}
        assert issues[0].severity == Severity.WARNING

    def test_artist_is_channel(self):
        """Test that channel-like artists are flagged."""
        issues = audit_record(make_record(artist="KaytranadaVEVO Official"))
        assert ("artist", "artist-is-channel") in rules_of(issues)

    def test_info_rules(self):
        """Test the placeholder date and empty note rules."""
        issues = audit_record(make_record(publish_date="2016-01-01", curator_note=""))
        assert rules_of(issues) == {
            ("publishDate", "date-placeholder"),
            ("curator_note", "empty-curator-note"),
        }
        assert {issue.severity for issue in issues} == {Severity.INFO}

    def test_absent_credits_are_not_flagged(self):
        """Test that missing credit fields are not issues."""
        assert audit_record(make_record(credits=CreditRecord())) == []


class TestAuditRecords:
    """Test cases for audit_records and count_by_severity."""

    def test_counts(self):
        """Test aggregation across records."""
        records = [
            make_record(),
            make_record(slug="2016-b", credits=CreditRecord(director="- idan")),
            make_record(slug="2016-c", curator_note=""),
        ]
        issues_by_slug = audit_records(records)

        assert list(issues_by_slug) == ["2016-kaytranada-lite-spots", "2016-b", "2016-c"]
        counts = count_by_severity(issues_by_slug)
        assert counts[Severity.INFO] == 1
        assert counts[Severity.CRITICAL] == 0

    def test_rules_are_named_uniquely(self):
        """Test that every rule has a distinct name."""
        names = [rule.rule for rule in QUALITY_RULES]
        assert len(names) == len(set(names))

    @pytest.mark.parametrize("rule", QUALITY_RULES, ids=lambda r: r.rule)
    def test_rule_fields_declared(self, rule):
        """Test that every rule applies to at least one field."""
        assert rule.fields
