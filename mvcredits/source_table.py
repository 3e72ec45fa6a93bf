"""Reading and validating the hand-maintained source tables (CSV)."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .exceptions import SourceTableError
from .records import SourceRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("Artist", "Title", "Director", "Year")
OPTIONAL_COLUMNS = ("Authority_Signal", "Visual_Hook", "Target_URL")


@dataclass
class TableValidation:
    """Result of checking one source table."""

    path: str
    valid: bool = False
    row_count: int = 0
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _load_frame(path: Path) -> pd.DataFrame:
    """Read a CSV with every cell as a trimmed string; blanks stay ''."""
    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError:
        raise SourceTableError(f"{path}: file is empty")
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise SourceTableError(f"{path}: {e}")
    except OSError as e:
        raise SourceTableError(f"Cannot read {path}: {e}")

    df.columns = [str(column).strip() for column in df.columns]
    # short rows leave NaN in their trailing cells
    df = df.fillna("")
    for column in df.columns:
        df[column] = df[column].str.strip()
    return df


def _column_lookup(columns: Iterable[str]) -> Dict[str, str]:
    """Lowercased column name -> column name as written in the file."""
    return {column.lower(): column for column in columns}


def read_source_table(path, default_year: Optional[str] = None) -> List[SourceRecord]:
    """Read a source table into SourceRecords, keeping row order.

    Args:
        path: CSV file with at least Artist and Title columns.
        default_year: Year used for rows without one; defaults to the file
            name without extension (``2016.csv`` -> ``2016``).

    Raises:
        SourceTableError: If the file cannot be read as CSV.
    """
    path = Path(path)
    default_year = path.stem if default_year is None else default_year
    df = _load_frame(path)
    columns = _column_lookup(df.columns)

    def cell(row: pd.Series, name: str) -> str:
        column = columns.get(name.lower())
        return row[column] if column else ""

    records = []
    for position, (_, row) in enumerate(df.iterrows(), start=1):
        records.append(
            SourceRecord(
                artist=cell(row, "Artist"),
                title=cell(row, "Title"),
                director=cell(row, "Director"),
                year=cell(row, "Year") or default_year,
                authority_signal=cell(row, "Authority_Signal"),
                visual_hook=cell(row, "Visual_Hook"),
                target_url=cell(row, "Target_URL") or None,
                line_number=position,
            )
        )

    logger.info(f"Read {len(records)} rows from {path.name}")
    return records


def discover_source_tables(data_dir, ignored: Iterable[str] = ()) -> List[Path]:
    """CSV files in ``data_dir`` in sorted order, minus report files."""
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        return []
    ignored_names = {name.lower() for name in ignored}
    return sorted(
        path
        for path in data_dir.iterdir()
        if path.is_file()
        and path.suffix.lower() == ".csv"
        and path.name.lower() not in ignored_names
    )


def validate_source_table(path) -> TableValidation:
    """Check headers and required values of a source table."""
    path = Path(path)
    result = TableValidation(path=str(path))

    if not path.exists():
        result.errors.append("File not found")
        return result
    if path.stat().st_size == 0:
        result.errors.append("File is empty")
        return result

    raw = path.read_bytes()
    if b"\r" in raw and b"\r\n" not in raw:
        result.warnings.append("File uses old Mac (CR) line endings; convert to LF")

    try:
        df = _load_frame(path)
    except SourceTableError as e:
        result.errors.append(str(e))
        return result

    headers = list(df.columns)
    missing = [name for name in REQUIRED_COLUMNS if name not in headers]
    if missing:
        result.errors.append(f"Missing required headers: {', '.join(missing)}")
    expected = set(REQUIRED_COLUMNS) | set(OPTIONAL_COLUMNS)
    unexpected = [name for name in headers if name not in expected]
    if unexpected:
        result.warnings.append(f"Unexpected headers: {', '.join(unexpected)}")

    present = [name for name in REQUIRED_COLUMNS if name in headers]
    for position, (_, row) in enumerate(df.iterrows(), start=1):
        empty = [name for name in present if not row[name]]
        if empty:
            result.errors.append(f"Line {position}: Missing {', '.join(empty)}")

    result.row_count = len(df)
    result.valid = not result.errors and result.row_count > 0
    return result
