"""Compare source-of-truth rows against the persisted content set."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

from .config import ReconcileConfig
from .content_store import LocalCoverStore
from .records import ContentRecord, SourceRecord
from .slug_matcher import MatchStrategy, SlugMatcher

logger = logging.getLogger(__name__)


class AuditStatus(Enum):
    OK = "ok"
    MISSING = "missing"
    SUSPICIOUS = "suspicious"
    MISMATCH = "mismatch"
    SKIP = "skip"


REASON_MISSING_FIELDS = "missing required source fields"
REASON_NO_MATCH = "No content record found (failed search or skipped)"
REASON_MALFORMED = "Content file exists but its header is invalid"
REASON_BAD_COVER = "Cover image missing or corrupted"
REASON_OK = "All checks passed"


@dataclass
class AuditEntry:
    """Outcome of reconciling one source row."""

    status: AuditStatus
    reason: str
    source: SourceRecord
    matched_slug: Optional[str] = None
    strategy: MatchStrategy = MatchStrategy.NONE
    content_artist: Optional[str] = None
    content_title: Optional[str] = None


class Reconciler:
    """Classify every source row as ok, missing, mismatch, suspicious or skip.

    Checks run in a fixed order and the first failing one decides the
    status: skip, missing, mismatch, suspicious title, suspicious cover.
    """

    def __init__(
        self,
        matcher: Optional[SlugMatcher] = None,
        cover_store: Optional[LocalCoverStore] = None,
        config: Optional[ReconcileConfig] = None,
    ):
        self.matcher = matcher or SlugMatcher()
        self.cover_store = cover_store
        self.config = config or ReconcileConfig()

    def suspicious_reason(self, title: str) -> Optional[str]:
        """Reason for the first suspicious keyword found in ``title``."""
        lowered = (title or "").lower()
        for keyword, reason in self.config.suspicious_keywords.items():
            if keyword.lower() in lowered:
                return reason
        return None

    def reconcile(
        self,
        source_records: Iterable[SourceRecord],
        content_records: Iterable[ContentRecord],
        malformed_slugs: Iterable[str] = (),
    ) -> List[AuditEntry]:
        """Audit ``source_records`` against ``content_records``.

        Args:
            source_records: Rows of the source table, in table order.
            content_records: The loaded content set. Not modified.
            malformed_slugs: Slugs of content files that exist but could not
                be parsed. A row matching one of them is still missing, with
                a reason naming the broken file.

        Returns:
            One AuditEntry per source row, in input order.
        """
        by_slug: Dict[str, ContentRecord] = {record.slug: record for record in content_records}
        malformed = frozenset(malformed_slugs) - by_slug.keys()
        slugs = frozenset(by_slug) | malformed

        entries = [self.audit_row(row, by_slug, slugs) for row in source_records]

        counts: Dict[str, int] = {}
        for entry in entries:
            counts[entry.status.value] = counts.get(entry.status.value, 0) + 1
        logger.info(f"Reconciled {len(entries)} rows: {counts}")
        return entries

    def audit_row(
        self,
        row: SourceRecord,
        by_slug: Dict[str, ContentRecord],
        slugs: Optional[FrozenSet[str]] = None,
    ) -> AuditEntry:
        if not row.has_required_fields:
            return AuditEntry(AuditStatus.SKIP, REASON_MISSING_FIELDS, row)

        match = self.matcher.find_match(
            row.year, row.artist, row.title, slugs if slugs is not None else by_slug.keys()
        )
        if not match.found:
            return AuditEntry(AuditStatus.MISSING, REASON_NO_MATCH, row)

        record = by_slug.get(match.slug)
        if record is None:
            logger.warning(f"'{row.artist} - {row.title}' matches unparseable file {match.slug}")
            return AuditEntry(
                AuditStatus.MISSING,
                REASON_MALFORMED,
                row,
                matched_slug=match.slug,
                strategy=match.strategy,
            )

        entry = AuditEntry(
            AuditStatus.OK,
            REASON_OK,
            row,
            matched_slug=match.slug,
            strategy=match.strategy,
            content_artist=record.artist,
            content_title=record.title,
        )

        if record.artist.strip().lower() != row.artist.strip().lower():
            entry.status = AuditStatus.MISMATCH
            entry.reason = f'Artist mismatch: source="{row.artist}" vs content="{record.artist}"'
            return entry

        keyword_reason = self.suspicious_reason(record.title)
        if keyword_reason:
            entry.status = AuditStatus.SUSPICIOUS
            entry.reason = f"Title contains suspicious keyword: {keyword_reason}"
            return entry

        if self.config.check_covers and self.cover_store is not None:
            if not self.cover_store.has_valid_cover(record):
                entry.status = AuditStatus.SUSPICIOUS
                entry.reason = REASON_BAD_COVER
                return entry

        return entry
