"""Repairs planned from audit results and applied after the audit pass.

Planning never touches the content directory. ``apply_repairs`` runs only
once a whole audit pass is complete, so a rename can never influence how a
later source row is matched.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Set

from .content_store import ContentStore
from .exceptions import CreditsError, SlugCollisionError
from .quality_auditor import Issue, Severity
from .reconciler import AuditEntry, AuditStatus
from .records import CREDIT_FIELDS, ContentRecord
from .slug_matcher import MatchStrategy, build_slug

logger = logging.getLogger(__name__)

CORRUPTING_SEVERITIES = frozenset({Severity.CRITICAL, Severity.ERROR})


@dataclass
class ArtistAlignment:
    slug: str
    current_artist: str
    expected_artist: str


@dataclass
class RenamePlan:
    old_slug: str
    new_slug: str
    artist: str
    title: str


@dataclass
class RepairPlan:
    alignments: List[ArtistAlignment] = field(default_factory=list)
    renames: List[RenamePlan] = field(default_factory=list)
    # renames refused because the target slug is taken
    collisions: List[SlugCollisionError] = field(default_factory=list)


@dataclass
class RepairSummary:
    aligned: int = 0
    renamed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    dry_run: bool = True


def plan_artist_alignments(
    entries: Iterable[AuditEntry], exact_case: bool = False
) -> List[ArtistAlignment]:
    """One alignment per content record whose artist disagrees with the source.

    Args:
        entries: Audit entries from a completed reconciliation.
        exact_case: Also align records that only differ in letter case.
    """
    alignments: List[ArtistAlignment] = []
    seen: Set[str] = set()
    for entry in entries:
        if not entry.matched_slug or entry.matched_slug in seen:
            continue
        if entry.status == AuditStatus.MISMATCH or (
            exact_case
            and entry.status in (AuditStatus.OK, AuditStatus.SUSPICIOUS)
            and entry.content_artist != entry.source.artist
        ):
            seen.add(entry.matched_slug)
            alignments.append(
                ArtistAlignment(
                    slug=entry.matched_slug,
                    current_artist=entry.content_artist or "",
                    expected_artist=entry.source.artist,
                )
            )
    return alignments


def plan_renames(entries: Iterable[AuditEntry], existing_slugs: Iterable[str]) -> RepairPlan:
    """Renames for fuzzy-matched records whose slug is not the canonical one.

    A rename whose target already exists, or is claimed by an earlier rename
    in the same plan, is refused and recorded in ``collisions``.
    """
    plan = RepairPlan()
    taken = set(existing_slugs)
    moved: Set[str] = set()

    for entry in entries:
        if not entry.matched_slug or entry.strategy in (MatchStrategy.EXACT, MatchStrategy.NONE):
            continue
        if entry.status in (AuditStatus.MISSING, AuditStatus.SKIP):
            continue
        if entry.matched_slug in moved:
            continue
        row = entry.source
        target = build_slug(row.year, row.artist, row.title)
        if target == entry.matched_slug:
            continue
        if target in taken:
            plan.collisions.append(
                SlugCollisionError(f"{entry.matched_slug} -> {target}: target already exists")
            )
            continue

        taken.add(target)
        moved.add(entry.matched_slug)
        plan.renames.append(
            RenamePlan(
                old_slug=entry.matched_slug,
                new_slug=target,
                artist=row.artist,
                title=row.title,
            )
        )
    return plan


def clear_corrupted_credits(record: ContentRecord, issues: Iterable[Issue]) -> List[str]:
    """Empty the credit fields that carry critical or error issues.

    Values are removed, never rewritten; re-extraction fills them again.

    Returns:
        Names of the fields that were cleared.
    """
    cleared = []
    for issue in issues:
        if issue.field not in CREDIT_FIELDS or issue.severity not in CORRUPTING_SEVERITIES:
            continue
        if getattr(record.credits, issue.field) and issue.field not in cleared:
            setattr(record.credits, issue.field, None)
            cleared.append(issue.field)
    if cleared:
        logger.info(f"{record.slug}: cleared corrupted credits {cleared}")
    return cleared


def apply_repairs(
    store: ContentStore,
    alignments: Iterable[ArtistAlignment],
    renames: Iterable[RenamePlan],
    dry_run: bool = True,
) -> RepairSummary:
    """Write planned repairs to the store.

    Args:
        store: Content store the plan was computed against.
        alignments: Artist corrections.
        renames: Slug renames, applied after the alignments.
        dry_run: Only log what would change.

    Returns:
        Counts of applied and skipped repairs.
    """
    summary = RepairSummary(dry_run=dry_run)
    prefix = "[dry-run] " if dry_run else ""

    for alignment in alignments:
        logger.info(
            f"{prefix}Align {alignment.slug}: '{alignment.current_artist}' -> "
            f"'{alignment.expected_artist}'"
        )
        if dry_run:
            summary.aligned += 1
            continue
        try:
            store.update_artist(alignment.slug, alignment.expected_artist)
            summary.aligned += 1
        except (CreditsError, OSError) as e:
            logger.error(f"Failed to align {alignment.slug}: {e}")
            summary.errors.append(f"{alignment.slug}: {e}")

    for rename in renames:
        logger.info(f"{prefix}Rename {rename.old_slug} -> {rename.new_slug}")
        if dry_run:
            summary.renamed += 1
            continue
        try:
            store.rename(rename.old_slug, rename.new_slug, artist=rename.artist, title=rename.title)
            summary.renamed += 1
        except SlugCollisionError as e:
            logger.warning(str(e))
            summary.skipped += 1
        except (CreditsError, OSError) as e:
            logger.error(f"Failed to rename {rename.old_slug}: {e}")
            summary.errors.append(f"{rename.old_slug}: {e}")

    return summary
