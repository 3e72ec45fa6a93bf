"""Markdown reports for audit and quality results."""

import math
from datetime import datetime
from typing import Dict, List, Optional

from .quality_auditor import SEVERITY_ORDER, Issue, Severity, count_by_severity
from .reconciler import AuditEntry, AuditStatus

STATUS_LABELS: Dict[AuditStatus, str] = {
    AuditStatus.OK: "✅ OK",
    AuditStatus.MISSING: "🔴 MISSING",
    AuditStatus.SUSPICIOUS: "🟡 SUSPICIOUS",
    AuditStatus.MISMATCH: "🟠 MISMATCH",
    AuditStatus.SKIP: "⚪️ SKIP",
}

SEVERITY_PENALTIES: Dict[Severity, int] = {
    Severity.CRITICAL: 10,
    Severity.ERROR: 5,
    Severity.WARNING: 2,
    Severity.INFO: 1,
}


def count_by_status(entries: List[AuditEntry]) -> Dict[AuditStatus, int]:
    counts = {status: 0 for status in STATUS_LABELS}
    for entry in entries:
        counts[entry.status] += 1
    return counts


def _percentage(count: int, total: int) -> str:
    return f"{count / total * 100:.1f}%" if total else "0.0%"


def render_audit_report(
    entries: List[AuditEntry],
    generated_at: Optional[datetime] = None,
    failures: Optional[List[str]] = None,
) -> str:
    """Render reconciliation results grouped by status.

    Args:
        entries: Audit entries in source-table order.
        generated_at: Timestamp printed in the header; defaults to now.
        failures: Content files that could not be parsed, one line each.

    Returns:
        The report as Markdown.
    """
    generated_at = generated_at or datetime.now()
    failures = failures or []
    counts = count_by_status(entries)
    total = len(entries)

    lines = [
        "# 📋 AUDIT REPORT",
        "",
        f"**Generated:** {generated_at.isoformat(timespec='seconds')}",
        "",
        f"**Total Rows:** {total}",
        "",
    ]
    if failures:
        lines += [f"**Unparseable Content Files:** {len(failures)}", ""]
    lines += [
        "## 📊 Summary",
        "",
        "| Status | Count | Percentage |",
        "|--------|-------|------------|",
    ]
    for status, label in STATUS_LABELS.items():
        lines.append(f"| {label} | {counts[status]} | {_percentage(counts[status], total)} |")
    lines += ["", "---", ""]

    missing = [e for e in entries if e.status == AuditStatus.MISSING]
    if missing:
        lines += [
            f"## {STATUS_LABELS[AuditStatus.MISSING]} ({len(missing)})",
            "",
            "Rows of the source table without a content record.",
            "",
        ]
        for entry in missing:
            row = entry.source
            lines += [
                f"### {row.artist} - {row.title}",
                f"- **Year:** {row.year}",
                f"- **Director:** {row.director or 'N/A'}",
            ]
            if entry.matched_slug:
                lines.append(f"- **File:** `{entry.matched_slug}.mdx`")
            action = (
                "Repair the file header or re-ingest with `--force`"
                if entry.matched_slug
                else "Run `mv-credits hunt` or ingest manually"
            )
            lines += [
                f"- **Reason:** {entry.reason}",
                f"- **Action:** {action}",
                "",
            ]
        lines += ["---", ""]

    suspicious = [e for e in entries if e.status == AuditStatus.SUSPICIOUS]
    if suspicious:
        lines += [
            f"## {STATUS_LABELS[AuditStatus.SUSPICIOUS]} ({len(suspicious)})",
            "",
            "Content records that exist but are probably not the official video, "
            "or whose cover is missing.",
            "",
        ]
        for entry in suspicious:
            row = entry.source
            lines += [
                f"### {row.artist} - {row.title}",
                f"- **Year:** {row.year}",
                f"- **File:** `{entry.matched_slug}.mdx`",
                f"- **Reason:** {entry.reason}",
                "- **Action:** Review manually and re-ingest if needed",
                "",
            ]
        lines += ["---", ""]

    mismatch = [e for e in entries if e.status == AuditStatus.MISMATCH]
    if mismatch:
        lines += [
            f"## {STATUS_LABELS[AuditStatus.MISMATCH]} ({len(mismatch)})",
            "",
            "Content records whose artist differs from the source table.",
            "",
        ]
        for entry in mismatch:
            row = entry.source
            lines += [
                f"### {row.artist} - {row.title}",
                f"- **Year:** {row.year}",
                f"- **Expected Artist:** `{row.artist}`",
                f"- **Parsed Artist:** `{entry.content_artist}`",
                f"- **File:** `{entry.matched_slug}.mdx`",
                f"- **Match:** {entry.strategy.value}",
                f"- **Reason:** {entry.reason}",
                "- **Action:** Add a channel alias or run `mv-credits align --yes`",
                "",
            ]
        lines += ["---", ""]

    skipped = [e for e in entries if e.status == AuditStatus.SKIP]
    if skipped:
        lines += [
            f"## {STATUS_LABELS[AuditStatus.SKIP]} ({len(skipped)})",
            "",
            "Rows skipped because of missing data.",
            "",
        ]
        for entry in skipped:
            row = entry.source
            where = f", **Line:** {row.line_number}" if row.line_number else ""
            lines.append(f"- **Year:** {row.year}{where}, **Reason:** {entry.reason}")
        lines += ["", "---", ""]

    if failures:
        lines += [
            f"## ⛔ UNPARSEABLE CONTENT FILES ({len(failures)})",
            "",
            "Files in the content directory whose header could not be read.",
            "",
        ]
        lines += [f"- {failure}" for failure in failures]
        lines += ["", "---", ""]

    return "\n".join(lines) + "\n"


def quality_score(issues_by_slug: Dict[str, List[Issue]], total_files: Optional[int] = None) -> int:
    """Percentage score: 100 points per file minus a penalty per issue."""
    total_files = len(issues_by_slug) if total_files is None else total_files
    if total_files <= 0:
        return 100
    max_score = total_files * 100
    counts = count_by_severity(issues_by_slug)
    deductions = sum(SEVERITY_PENALTIES[s] * n for s, n in counts.items())
    score = max(0, max_score - deductions)
    return math.floor(score / max_score * 100 + 0.5)


def score_verdict(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good, with room for improvement"
    if score >= 50:
        return "Fair, fix the issues soon"
    return "Poor, needs immediate attention"


def render_quality_report(
    issues_by_slug: Dict[str, List[Issue]],
    failures: Optional[List[str]] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render quality audit results grouped by rule."""
    generated_at = generated_at or datetime.now()
    failures = failures or []
    total = len(issues_by_slug)
    with_issues = sum(1 for issues in issues_by_slug.values() if issues)
    counts = count_by_severity(issues_by_slug)
    score = quality_score(issues_by_slug)

    lines = [
        "# Quality Report",
        "",
        f"**Generated:** {generated_at.isoformat(timespec='seconds')}",
        "",
        f"- Files checked: {total}",
        f"- Clean: {total - with_issues} ({_percentage(total - with_issues, total)})",
        f"- With issues: {with_issues} ({_percentage(with_issues, total)})",
    ]
    if failures:
        lines.append(f"- Failed to parse: {len(failures)}")
    lines += ["", "| Severity | Count |", "|----------|-------|"]
    for severity in SEVERITY_ORDER:
        lines.append(f"| {severity.value} | {counts[severity]} |")
    lines += ["", f"**Score:** {score}% ({score_verdict(score)})", ""]

    by_rule: Dict[str, List[tuple]] = {}
    for slug, issues in issues_by_slug.items():
        for issue in issues:
            by_rule.setdefault(issue.rule, []).append((slug, issue))

    for rule, hits in by_rule.items():
        first = hits[0][1]
        lines += [f"## {rule} [{first.severity.value}] ({len(hits)})", "", first.description, ""]
        for slug, issue in hits:
            lines.append(f"- `{slug}.mdx` {issue.field}: {issue.value}")
        lines.append("")

    if failures:
        lines += ["## Unparseable files", ""]
        lines += [f"- {failure}" for failure in failures]
        lines.append("")

    return "\n".join(lines)
