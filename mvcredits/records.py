"""Record types shared by the pipeline and the content file format.

A content record is stored as ``{slug}.mdx``: a ``---`` delimited YAML header
followed by a free-form body. Only the header is interpreted here; the body
is carried through untouched.
"""

import datetime
import json
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import MalformedRecordError

CONTENT_EXTENSION = ".mdx"

FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?P<header>.*?)^---[ \t]*(?:\r?\n|\Z)(?P<body>.*)\Z",
    re.DOTALL | re.MULTILINE,
)
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SLUG_YEAR_PATTERN = re.compile(r"^(\d{4})-")

CREDIT_FIELDS = ("director", "production", "label")
REQUIRED_HEADER_KEYS = ("title", "video_url")
KNOWN_HEADER_KEYS = (
    "title",
    "artist",
    "video_url",
    "publishDate",
    "cover",
    "curator_note",
    "director",
    "production",
    "label",
    "tags",
)


@dataclass(frozen=True)
class SourceRecord:
    """One row of the source-of-truth table."""

    artist: str
    title: str
    director: str = ""
    year: str = ""
    authority_signal: str = ""
    visual_hook: str = ""
    target_url: Optional[str] = None
    line_number: Optional[int] = None

    @property
    def has_required_fields(self) -> bool:
        return bool(self.artist.strip()) and bool(self.title.strip())


@dataclass
class CreditRecord:
    """Credits extracted from a description; None means no confident value."""

    director: Optional[str] = None
    production: Optional[str] = None
    label: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.director or self.production or self.label)

    def to_dict(self) -> Dict[str, str]:
        return {name: getattr(self, name) for name in CREDIT_FIELDS if getattr(self, name)}


@dataclass
class ContentRecord:
    """A persisted video page."""

    slug: str
    title: str
    artist: str
    video_url: str
    publish_date: str = ""
    cover: str = ""
    credits: CreditRecord = field(default_factory=CreditRecord)
    tags: List[str] = field(default_factory=list)
    curator_note: str = ""
    body: str = ""
    # header keys this package does not manage (dop, editor, ...)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def file_name(self) -> str:
        return f"{self.slug}{CONTENT_EXTENSION}"

    @property
    def year(self) -> str:
        """Year encoded in the slug, falling back to the publish date."""
        match = SLUG_YEAR_PATTERN.match(self.slug)
        if match:
            return match.group(1)
        return self.publish_date[:4]

    def text_fields(self) -> Dict[str, str]:
        """Human-readable fields checked by the quality audit."""
        fields = {
            "title": self.title,
            "artist": self.artist,
            "curator_note": self.curator_note,
            "publishDate": self.publish_date,
        }
        for name in CREDIT_FIELDS:
            fields[name] = getattr(self.credits, name) or ""
        return fields

    def with_slug(self, slug: str) -> "ContentRecord":
        return replace(self, slug=slug)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()[:10]
    return str(value).strip()


def parse_content_record(text: str, slug: str, source: Optional[str] = None) -> ContentRecord:
    """Parse the text of a content file.

    Args:
        text: Full file contents.
        slug: Slug taken from the file name.
        source: Path used in error messages.

    Returns:
        The parsed ContentRecord.

    Raises:
        MalformedRecordError: If the header delimiters are missing, the header
            is not valid YAML, or a required key is absent.
    """
    source = source or f"{slug}{CONTENT_EXTENSION}"
    match = FRONTMATTER_PATTERN.match(text.lstrip("\ufeff"))
    if not match:
        raise MalformedRecordError(source, "missing '---' header delimiters")

    try:
        header = yaml.safe_load(match.group("header"))
    except yaml.YAMLError as e:
        raise MalformedRecordError(source, f"invalid header: {e}")

    if header is None:
        header = {}
    if not isinstance(header, dict):
        raise MalformedRecordError(source, "header is not a key/value mapping")

    for key in REQUIRED_HEADER_KEYS:
        if not _as_text(header.get(key)):
            raise MalformedRecordError(source, f"missing required key '{key}'")

    tags = header.get("tags") or []
    if not isinstance(tags, list):
        raise MalformedRecordError(source, "tags must be a list")

    credits = CreditRecord(**{name: _as_text(header.get(name)) or None for name in CREDIT_FIELDS})

    return ContentRecord(
        slug=slug,
        title=_as_text(header.get("title")),
        artist=_as_text(header.get("artist")),
        video_url=_as_text(header.get("video_url")),
        publish_date=_as_text(header.get("publishDate")),
        cover=_as_text(header.get("cover")),
        credits=credits,
        tags=[_as_text(tag) for tag in tags if _as_text(tag)],
        curator_note=_as_text(header.get("curator_note")),
        body=match.group("body"),
        extra={k: v for k, v in header.items() if k not in KNOWN_HEADER_KEYS},
    )


def _quote(value: Any) -> str:
    """Double-quoted scalar; JSON string escaping is valid YAML."""
    if isinstance(value, (datetime.date, datetime.datetime)):
        value = value.isoformat()
    return json.dumps(value, ensure_ascii=False)


def render_content_record(record: ContentRecord) -> str:
    """Render a record back to the content file format."""
    lines = [
        "---",
        f"title: {_quote(record.title)}",
        f"artist: {_quote(record.artist)}",
        f"video_url: {_quote(record.video_url)}",
    ]
    if ISO_DATE_PATTERN.match(record.publish_date):
        lines.append(f"publishDate: {record.publish_date}")
    else:
        lines.append(f"publishDate: {_quote(record.publish_date)}")
    lines.append(f"cover: {_quote(record.cover)}")
    lines.append(f"curator_note: {_quote(record.curator_note)}")

    for name, value in record.credits.to_dict().items():
        lines.append(f"{name}: {_quote(value)}")
    for key, value in record.extra.items():
        lines.append(f"{key}: {_quote(value)}")

    lines.append(f"tags: {json.dumps(record.tags, ensure_ascii=False)}")
    lines.append("---")
    return "\n".join(lines) + "\n" + record.body
