"""Command-line interface for the music video credits pipeline."""

import asyncio
import json
import logging
import sys
import time
from pathlib import Path

import click
from tqdm import tqdm

from mvcredits import __version__
from mvcredits.config import PipelineConfig, load_config, save_config_template
from mvcredits.content_store import ContentStore, LocalCoverStore
from mvcredits.covers import CoverDownloader
from mvcredits.credit_extractor import CreditExtractor
from mvcredits.duplicates import (
    DEFAULT_SIMILARITY_THRESHOLD,
    find_exact_duplicates,
    find_fuzzy_duplicates,
)
from mvcredits.exceptions import CreditsError, SourceTableError
from mvcredits.ingest import HuntStatus, IngestPipeline, IngestStatus, write_missing_report
from mvcredits.name_normalizer import clean_title
from mvcredits.provider import YtDlpMetadataProvider
from mvcredits.quality_auditor import audit_records, count_by_severity
from mvcredits.reconciler import Reconciler
from mvcredits.records import CREDIT_FIELDS
from mvcredits.repair import (
    apply_repairs,
    clear_corrupted_credits,
    plan_artist_alignments,
    plan_renames,
)
from mvcredits.reporting import (
    STATUS_LABELS,
    count_by_status,
    quality_score,
    render_audit_report,
    render_quality_report,
)
from mvcredits.slug_matcher import SlugMatcher
from mvcredits.source_table import (
    discover_source_tables,
    read_source_table,
    validate_source_table,
)
from mvcredits.utils import setup_logging


def _setup(config_path, verbose: bool = False) -> PipelineConfig:
    """Load configuration and configure logging from it."""
    try:
        cfg = load_config(config_path)
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        sys.exit(1)

    level = logging.DEBUG if verbose else getattr(logging, cfg.logging.level.upper())
    setup_logging(
        level=level,
        log_file=cfg.logging.file_path,
        max_bytes=cfg.logging.max_file_size_mb * 1024 * 1024,
        backup_count=cfg.logging.backup_count,
        console_output=cfg.logging.console_output,
    )
    return cfg


def _source_tables(cfg: PipelineConfig, csv_files):
    if csv_files:
        return [Path(p) for p in csv_files]
    return discover_source_tables(cfg.paths.data_dir, cfg.paths.ignored_csv_files)


def _read_sources(tables):
    rows = []
    for table in tables:
        try:
            rows.extend(read_source_table(table))
        except SourceTableError as e:
            logging.error(f"Skipping source table: {e}")
    return rows


def _banner(title: str) -> None:
    print("\n" + "=" * 50)
    print(title)
    print("=" * 50)


@click.group()
@click.version_option(__version__)
def cli():
    """Music Video Credits - extract, reconcile and audit music video credits."""
    pass


@cli.command()
@click.argument("description_file", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
def extract(description_file, config):
    """Extract director, production company and label from a video description.

    Reads DESCRIPTION_FILE, or standard input when omitted.
    """
    cfg = load_config(config)
    credits = CreditExtractor(cfg.extraction).extract(description_file.read())
    result = {name: getattr(credits, name) for name in CREDIT_FIELDS}
    print(json.dumps(result, indent=2, ensure_ascii=False))


@cli.command("clean-title")
@click.argument("title")
@click.option("--artist", "-a", default="", help="Artist name to strip from the title")
def clean_title_command(title, artist):
    """Print the cleaned song title of a raw video title."""
    print(clean_title(title, artist))


@cli.command()
@click.argument("csv_files", nargs=-1, type=click.Path(exists=True))
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--output", "-o", help="Report path (defaults to paths.audit_report)")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def audit(csv_files, config, output, verbose):
    """Reconcile source tables against the content set and write the audit report."""
    cfg = _setup(config, verbose)
    tables = _source_tables(cfg, csv_files)
    if not tables:
        logging.error(f"No source tables found in {cfg.paths.data_dir}")
        sys.exit(1)

    rows = _read_sources(tables)
    loaded = ContentStore(cfg.paths.content_dir).load_all()
    reconciler = Reconciler(
        matcher=SlugMatcher(cfg.matching),
        cover_store=LocalCoverStore(cfg.paths.public_dir),
        config=cfg.reconcile,
    )
    entries = reconciler.reconcile(rows, loaded.records, loaded.failed_slugs)

    failures = [f"{e.path}: {e.reason}" for e in loaded.failures]
    report_path = Path(output or cfg.paths.audit_report)
    report_path.write_text(render_audit_report(entries, failures=failures), encoding="utf-8")

    _banner("AUDIT RESULTS")
    print(f"Source tables: {len(tables)}")
    print(f"Source rows: {len(rows)}")
    print(f"Content records: {len(loaded.records)} ({len(loaded.failures)} malformed)")
    for status, count in count_by_status(entries).items():
        print(f"  {STATUS_LABELS[status]}: {count}")
    print(f"\nReport written to: {report_path}")


@cli.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--output", "-o", help="Report path (defaults to paths.quality_report)")
@click.option("--fix", is_flag=True, help="Clear credit fields with critical or error issues")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def quality(config, output, fix, verbose):
    """Check stored records for corrupted fields and write the quality report."""
    cfg = _setup(config, verbose)
    store = ContentStore(cfg.paths.content_dir)
    loaded = store.load_all()
    issues_by_slug = audit_records(loaded.records)

    if fix and not cfg.dry_run:
        fixed = 0
        for record in loaded.records:
            if clear_corrupted_credits(record, issues_by_slug[record.slug]):
                store.save(record)
                fixed += 1
        print(f"Cleared corrupted credits in {fixed} records")

    failures = [f"{e.path}: {e.reason}" for e in loaded.failures]
    report_path = Path(output or cfg.paths.quality_report)
    report_path.write_text(render_quality_report(issues_by_slug, failures), encoding="utf-8")

    _banner("QUALITY RESULTS")
    print(f"Files checked: {len(issues_by_slug)}")
    for severity, count in count_by_severity(issues_by_slug).items():
        print(f"  {severity.value}: {count}")
    print(f"Score: {quality_score(issues_by_slug)}%")
    print(f"\nReport written to: {report_path}")


@cli.command()
@click.argument("csv_files", nargs=-1, type=click.Path(exists=True))
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--yes", is_flag=True, help="Apply changes (default is a dry run)")
@click.option("--exact-case", is_flag=True, help="Also align artists differing only in case")
@click.option("--rename/--no-rename", default=True, help="Rename fuzzy-matched records to their canonical slug")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def align(csv_files, config, yes, exact_case, rename, verbose):
    """Align content artists and slugs with the source tables."""
    cfg = _setup(config, verbose)
    rows = _read_sources(_source_tables(cfg, csv_files))
    store = ContentStore(cfg.paths.content_dir)
    loaded = store.load_all()

    entries = Reconciler(matcher=SlugMatcher(cfg.matching), config=cfg.reconcile).reconcile(
        rows, loaded.records
    )
    alignments = plan_artist_alignments(entries, exact_case=exact_case)
    plan = plan_renames(entries, loaded.slugs) if rename else None
    renames = plan.renames if plan else []

    dry_run = not yes or cfg.dry_run
    summary = apply_repairs(store, alignments, renames, dry_run=dry_run)

    _banner("ALIGNMENT RESULTS" + (" (DRY RUN)" if dry_run else ""))
    print(f"Artist alignments: {summary.aligned}")
    print(f"Renames: {summary.renamed}")
    if plan and plan.collisions:
        print(f"Refused renames (target exists): {len(plan.collisions)}")
        for collision in plan.collisions:
            print(f"  {collision}")
    if summary.skipped:
        print(f"Skipped: {summary.skipped}")
    if summary.errors:
        print(f"Errors: {len(summary.errors)}")
        for error in summary.errors:
            print(f"  {error}")
    if dry_run:
        print("\nRun again with --yes to apply these changes.")
    if summary.errors:
        sys.exit(1)


def _pipeline(cfg: PipelineConfig) -> IngestPipeline:
    return IngestPipeline(
        provider=YtDlpMetadataProvider(cfg.fetch),
        store=ContentStore(cfg.paths.content_dir),
        downloader=CoverDownloader(cfg.paths.public_dir, cfg.fetch),
        config=cfg,
    )


@cli.command()
@click.argument("url")
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--tag", "-t", "tags", multiple=True, help="Tag to store (repeatable)")
@click.option("--note", default="", help="Curator note")
@click.option("--force", is_flag=True, help="Overwrite an existing record")
@click.option("--repair-covers", is_flag=True, help="Only re-download a missing cover")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def ingest(url, config, tags, note, force, repair_covers, verbose):
    """Fetch a YouTube or Vimeo video and write its content record."""
    cfg = _setup(config, verbose)
    pipeline = _pipeline(cfg)

    try:
        outcome = asyncio.run(
            pipeline.ingest(
                url,
                additional_tags=list(tags),
                curator_note=note,
                force=force,
                repair_covers=repair_covers,
            )
        )
    except KeyboardInterrupt:
        logging.info("Ingest interrupted by user")
        return
    except CreditsError as e:
        logging.error(f"Ingest failed: {e}")
        sys.exit(1)

    reason = f" ({outcome.reason})" if outcome.reason else ""
    print(f"{outcome.status.value}: {outcome.slug or url}{reason}")
    if outcome.status == IngestStatus.FAILED:
        sys.exit(1)


async def _hunt_async(pipeline: IngestPipeline, cfg: PipelineConfig, tables):
    """Hunt every table in turn, pausing between tables."""
    results = []
    for index, table in enumerate(tables):
        try:
            rows = read_source_table(table)
        except SourceTableError as e:
            logging.error(f"Skipping source table: {e}")
            continue

        logging.info(f"Hunting {len(rows)} rows from {table}")
        progress = tqdm(total=len(rows), desc=table.name, unit="row") if (
            cfg.ui.show_progress_bar and rows
        ) else None
        try:
            results.extend(
                await pipeline.hunt(rows, on_result=(lambda _: progress.update(1)) if progress else None)
            )
        finally:
            if progress:
                progress.close()

        if index < len(tables) - 1:
            await asyncio.sleep(cfg.fetch.file_delay_seconds)
    return results


@cli.command()
@click.argument("csv_files", nargs=-1, type=click.Path(exists=True))
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose logging")
def hunt(csv_files, config, verbose):
    """Find and ingest the videos listed in source tables."""
    cfg = _setup(config, verbose)
    tables = _source_tables(cfg, csv_files)
    if not tables:
        logging.error(f"No source tables found in {cfg.paths.data_dir}")
        sys.exit(1)

    pipeline = _pipeline(cfg)
    started = time.time()
    try:
        results = asyncio.run(_hunt_async(pipeline, cfg, tables))
    except KeyboardInterrupt:
        logging.info("Hunt interrupted by user")
        results = []

    if pipeline.missing:
        report = Path(cfg.paths.data_dir) / "missing_report.json"
        total = write_missing_report(report, pipeline.missing)
        print(f"Missing report updated: {report} ({total} entries)")

    counts = {status: 0 for status in HuntStatus}
    for result in results:
        counts[result.status] += 1

    _banner("HUNT RESULTS")
    print(f"Rows processed: {len(results)}")
    for status, count in counts.items():
        print(f"  {status.value}: {count}")
    print(f"Elapsed: {time.time() - started:.1f}s")


@cli.command("validate-csv")
@click.argument("csv_files", nargs=-1, type=click.Path())
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
def validate_csv(csv_files, config):
    """Check source tables for missing headers and values."""
    cfg = load_config(config)
    tables = _source_tables(cfg, csv_files)
    if not tables:
        print("No source tables to validate")
        sys.exit(1)

    invalid = 0
    for table in tables:
        result = validate_source_table(table)
        mark = "OK" if result.valid else "INVALID"
        print(f"{mark} {result.path} ({result.row_count} rows)")
        for error in result.errors:
            print(f"  error: {error}")
        for warning in result.warnings:
            print(f"  warning: {warning}")
        if not result.valid:
            invalid += 1

    print(f"\n{len(tables) - invalid}/{len(tables)} tables valid")
    if invalid:
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", type=click.Path(exists=True), help="Path to configuration file")
@click.option(
    "--threshold",
    default=DEFAULT_SIMILARITY_THRESHOLD,
    type=click.FloatRange(0, 1),
    help="Title similarity for fuzzy duplicates",
)
def duplicates(config, threshold):
    """List records sharing a video id or a near-identical title."""
    cfg = load_config(config)
    records = ContentStore(cfg.paths.content_dir).load_all().records

    exact = find_exact_duplicates(records)
    fuzzy = find_fuzzy_duplicates(records, threshold)

    for index, group in enumerate(exact, start=1):
        print(f"\n[EXACT #{index}] Video ID: {group.video_id}")
        for record in group.records:
            print(f"  - {record.file_name}: {record.artist or 'N/A'} - {record.title}")
    for index, group in enumerate(fuzzy, start=1):
        print(f"\n[FUZZY #{index}] Similarity: {group.similarity * 100:.1f}%")
        for record in group.records:
            print(f"  - {record.file_name}: {record.artist or 'N/A'} - {record.title}")

    _banner("DUPLICATE SUMMARY")
    print(f"Total records: {len(records)}")
    print(f"Exact duplicates: {len(exact)} groups ({sum(len(g.records) for g in exact)} files)")
    print(f"Fuzzy duplicates: {len(fuzzy)} groups ({sum(len(g.records) for g in fuzzy)} files)")
    if not exact and not fuzzy:
        print("No duplicates found.")


@cli.command("create-config")
@click.option("--output", "-o", default="config_template.yaml", help="Output path for template")
def create_config(output):
    """Create a configuration file template."""
    save_config_template(output)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
