"""File-backed storage of content records, one ``{slug}.mdx`` per record."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

from .exceptions import MalformedRecordError, SlugCollisionError
from .records import (
    CONTENT_EXTENSION,
    ContentRecord,
    parse_content_record,
    render_content_record,
)
from .slug_matcher import build_slug

logger = logging.getLogger(__name__)

COVER_URL_PREFIX = "/covers/"


@dataclass
class LoadResult:
    """Records that parsed, and the files that did not."""

    records: List[ContentRecord] = field(default_factory=list)
    failures: List[MalformedRecordError] = field(default_factory=list)

    @property
    def slugs(self) -> List[str]:
        return [record.slug for record in self.records]

    @property
    def failed_slugs(self) -> List[str]:
        """Slugs of the files that exist but could not be parsed."""
        return [Path(failure.path).stem for failure in self.failures]


class ContentStore:
    """Read and write content records in a directory."""

    def __init__(self, content_dir):
        self.content_dir = Path(content_dir)

    def path_for(self, slug: str) -> Path:
        return self.content_dir / f"{slug}{CONTENT_EXTENSION}"

    def iter_paths(self) -> Iterator[Path]:
        """Content files in sorted file-name order."""
        if not self.content_dir.is_dir():
            return iter(())
        return iter(sorted(self.content_dir.glob(f"*{CONTENT_EXTENSION}")))

    def list_slugs(self) -> List[str]:
        return [path.stem for path in self.iter_paths()]

    def exists(self, slug: str) -> bool:
        return self.path_for(slug).exists()

    def find_video(self, video_id: str) -> Optional[str]:
        """Slug of the first record whose file mentions ``video_id``."""
        if not video_id:
            return None
        for path in self.iter_paths():
            if video_id in path.read_text(encoding="utf-8", errors="replace"):
                return path.stem
        return None

    def load(self, slug: str) -> ContentRecord:
        """Load one record.

        Raises:
            FileNotFoundError: If no file exists for ``slug``.
            MalformedRecordError: If the file header cannot be parsed.
        """
        path = self.path_for(slug)
        text = path.read_text(encoding="utf-8")
        return parse_content_record(text, slug, source=str(path))

    def load_all(self) -> LoadResult:
        """Load every record, reporting malformed files instead of dropping them."""
        result = LoadResult()
        for path in self.iter_paths():
            try:
                text = path.read_text(encoding="utf-8")
                result.records.append(parse_content_record(text, path.stem, source=str(path)))
            except MalformedRecordError as e:
                logger.warning(f"Skipping malformed record {e.path}: {e.reason}")
                result.failures.append(e)
            except UnicodeDecodeError as e:
                logger.warning(f"Skipping unreadable record {path}: {e}")
                result.failures.append(MalformedRecordError(path, f"not valid UTF-8: {e}"))

        logger.info(
            f"Loaded {len(result.records)} records from {self.content_dir} "
            f"({len(result.failures)} malformed)"
        )
        return result

    def save(self, record: ContentRecord, overwrite: bool = True) -> Path:
        """Write ``record`` to ``{slug}.mdx``."""
        path = self.path_for(record.slug)
        if path.exists() and not overwrite:
            raise SlugCollisionError(f"{path.name} already exists")
        self.content_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(render_content_record(record), encoding="utf-8")
        logger.debug(f"Saved {path}")
        return path

    def update_artist(self, slug: str, artist: str) -> ContentRecord:
        """Set the artist of an existing record and write it back."""
        record = self.load(slug)
        record.artist = artist
        self.save(record)
        logger.info(f"Updated artist of {slug} -> '{artist}'")
        return record

    def rename(
        self,
        old_slug: str,
        new_slug: str,
        artist: Optional[str] = None,
        title: Optional[str] = None,
    ) -> ContentRecord:
        """Move a record to ``new_slug``, optionally correcting artist and title.

        Raises:
            SlugCollisionError: If a record already exists at ``new_slug``.
        """
        if old_slug != new_slug and self.exists(new_slug):
            raise SlugCollisionError(f"Cannot rename {old_slug}: {new_slug} already exists")

        record = self.load(old_slug)
        if artist:
            record.artist = artist
        if title:
            record.title = title
        renamed = record.with_slug(new_slug)
        self.save(renamed)
        if old_slug != new_slug:
            self.path_for(old_slug).unlink()
        logger.info(f"Renamed {old_slug} -> {new_slug}")
        return renamed


def slug_drift(record: ContentRecord) -> Optional[str]:
    """Canonical slug for ``record`` when it differs from the stored one."""
    if not record.year or not record.artist:
        return None
    expected = build_slug(record.year, record.artist, record.title)
    return expected if expected != record.slug else None


class LocalCoverStore:
    """Look up cover images served from ``{public_dir}/covers``."""

    def __init__(self, public_dir):
        self.public_dir = Path(public_dir)

    def cover_path(self, record: ContentRecord) -> Path:
        """Local file a record's cover should live at.

        A cover field pointing at ``/covers/...`` is used as is; otherwise the
        conventional ``covers/{year}/{slug without year}.jpg`` location.
        """
        if record.cover.startswith(COVER_URL_PREFIX):
            return self.public_dir / record.cover.lstrip("/")
        name = record.slug
        prefix = f"{record.year}-"
        if record.year and name.startswith(prefix):
            name = name[len(prefix) :]
        return self.public_dir / "covers" / record.year / f"{name}.jpg"

    def cover_size(self, record: ContentRecord) -> Optional[int]:
        """Size in bytes of the local cover, None when the file is absent."""
        path = self.cover_path(record)
        if not path.is_file():
            return None
        return path.stat().st_size

    def has_valid_cover(self, record: ContentRecord) -> bool:
        size = self.cover_size(record)
        return size is not None and size > 0
