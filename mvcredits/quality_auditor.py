"""Pattern checks for residue left behind by credit extraction.

Rules are data: each ``QualityRule`` names a pattern, the fields it applies
to and a severity. Adding a rule means adding an entry to ``QUALITY_RULES``.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from .records import ContentRecord

logger = logging.getLogger(__name__)


class Severity(Enum):
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


SEVERITY_ORDER: Tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.ERROR,
    Severity.WARNING,
    Severity.INFO,
)

# Crew fields written by extraction or by hand.
CREW_FIELDS = ("director", "editor", "dop", "vfx", "sound_design", "art_director")
ENTITY_FIELDS = ("production",)


@dataclass(frozen=True)
class QualityRule:
    """A declarative check applied to a list of fields."""

    rule: str
    severity: Severity
    fields: Tuple[str, ...]
    pattern: Pattern[str]
    description: str
    # match when the field is empty instead of testing the pattern
    flag_empty: bool = False

    def check(self, value: str) -> bool:
        if not value:
            return self.flag_empty
        return bool(self.pattern.search(value))


@dataclass(frozen=True)
class Issue:
    field: str
    severity: Severity
    rule: str
    description: str = ""
    value: str = ""


QUALITY_RULES: List[QualityRule] = [
    QualityRule(
        "leading-punctuation",
        Severity.ERROR,
        CREW_FIELDS + ENTITY_FIELDS,
        re.compile(r"^[-–—,\s]+[A-Z]"),
        "Value starts with a dash, comma or other separator",
    ),
    QualityRule(
        "social-handle",
        Severity.ERROR,
        CREW_FIELDS,
        re.compile(r"@[\w.]+"),
        "Value contains an @handle",
    ),
    QualityRule(
        "role-prefix",
        Severity.ERROR,
        CREW_FIELDS + ENTITY_FIELDS,
        re.compile(
            r"\b(?:Cinematographer|Editor|Director|DOP|VFX|Sound|Art Director|Producer"
            r"|Production|Colorist|Gaffer|Camera)\s*[-:]"
        ),
        "Value contains another role's label",
    ),
    QualityRule(
        "organization-prefix",
        Severity.WARNING,
        ("vfx", "sound_design") + ENTITY_FIELDS,
        re.compile(r"^[A-Z][a-z]+\s*:\s*"),
        "Value starts with an organisation prefix (Studio:, Company:)",
    ),
    QualityRule(
        "missing-first-letter",
        Severity.CRITICAL,
        CREW_FIELDS + ENTITY_FIELDS,
        re.compile(r"^[a-z]"),
        "Value starts lowercase; the first letter was probably cut off",
    ),
    QualityRule(
        "title-has-separator",
        Severity.WARNING,
        ("title",),
        re.compile(r"\s+-\s+"),
        'Title contains " - " and may still carry the artist',
    ),
    QualityRule(
        "artist-is-channel",
        Severity.WARNING,
        ("artist",),
        re.compile(r"\b(?:official|vevo|label|entertainment|records)\b", re.IGNORECASE),
        "Artist looks like a channel name",
    ),
    QualityRule(
        "date-placeholder",
        Severity.INFO,
        ("publishDate",),
        re.compile(r"-01-01$"),
        "Publish date is a YYYY-01-01 placeholder",
    ),
    QualityRule(
        "empty-curator-note",
        Severity.INFO,
        ("curator_note",),
        re.compile(r"^\s*$"),
        "curator_note is empty",
        flag_empty=True,
    ),
]


def record_fields(record: ContentRecord) -> Dict[str, str]:
    """Text fields of a record, including unmanaged crew keys."""
    fields = record.text_fields()
    for key, value in record.extra.items():
        if isinstance(value, str):
            fields.setdefault(key, value)
    return fields


def audit_record(
    record: ContentRecord, rules: Optional[Iterable[QualityRule]] = None
) -> List[Issue]:
    """Run every rule against every field it names.

    A field can trigger more than one rule.
    """
    fields = record_fields(record)
    issues = []
    for rule in QUALITY_RULES if rules is None else rules:
        for name in rule.fields:
            value = (fields.get(name) or "").strip()
            if name not in fields and not rule.flag_empty:
                continue
            if rule.check(value):
                issues.append(
                    Issue(
                        field=name,
                        severity=rule.severity,
                        rule=rule.rule,
                        description=rule.description,
                        value=value or "(empty)",
                    )
                )
    if issues:
        logger.debug(f"{record.slug}: {len(issues)} quality issues")
    return issues


def audit_records(records: Iterable[ContentRecord]) -> Dict[str, List[Issue]]:
    """Issues per slug for every record, in input order."""
    return {record.slug: audit_record(record) for record in records}


def count_by_severity(issues_by_slug: Dict[str, List[Issue]]) -> Dict[Severity, int]:
    counts = {severity: 0 for severity in SEVERITY_ORDER}
    for issues in issues_by_slug.values():
        for issue in issues:
            counts[issue.severity] += 1
    return counts
