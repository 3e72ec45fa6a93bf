"""Turn video URLs and source-table rows into content records.

``IngestPipeline.ingest`` fetches one video, resolves artist and title,
extracts credits, downloads the cover and writes the record.
``IngestPipeline.hunt`` walks source rows, searching for each video when the
row has no ``Target_URL``, and paces requests to stay under provider rate
limits.
"""

import asyncio
import datetime
import json
import logging
import re
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from .config import PipelineConfig
from .content_store import ContentStore
from .covers import CoverDownloader, cover_url_path, select_thumbnails
from .credit_extractor import CreditExtractor
from .exceptions import CreditsError
from .name_normalizer import clean_title, normalize_artist, normalize_channel
from .provider import MetadataProvider, SearchHit, VideoMetadata
from .records import ContentRecord, CreditRecord, SourceRecord
from .slug_matcher import build_slug
from .tagging import default_tags, visual_hook_to_tags
from .utils import detect_platform, extract_video_id, jitter_delay

logger = logging.getLogger(__name__)

# Titles of uploads that carry the song but not the video
PURE_AUDIO_KEYWORDS = ("audio", "lyric video", "lyrics", "visualizer", "audio only", "official audio")

# Search hits that are about a video rather than the video itself
JUNK_BLOCKLIST = (
    "highlight",
    "highlights",
    "compilation",
    "best of",
    "teaser",
    "trailer",
    "react",
    "reacts",
    "reaction",
    "review",
    "behind the scene",
    "behind the scenes",
    "making of",
    "making-of",
    "makingof",
    "interview",
    "documentary",
    "awards ceremony",
    "music video awards",
    "award winner",
    "best director",
    "best music video",
    "live performance",
    "concert",
    "recap",
    "preview",
    "announcement",
    "mashup",
    "mix",
    "remix collection",
    "playlist",
    "top 10",
    "top 5",
)

# Search hits with these in the title are rejected unless the wanted title
# itself contains the keyword
SEARCH_NEGATIVE_KEYWORDS = (
    "audio only",
    "official audio",
    "audio",
    "lyrics",
    "lyric video",
    "visualizer",
    "official visualizer",
    "behind the scenes",
    "bts",
    "making of",
    "making-of",
    "the making of",
    "teaser",
    "trailer",
    "preview",
    "1 hour",
    "one hour",
    "loop",
    "extended version",
    "extended",
    "fan made",
    "fan video",
    "fan edit",
    "reupload",
    "compilation",
    "playlist",
    "full album",
    "best of",
)

LONG_FORM_MARKERS = ("director's cut", "directors cut", "short film")

LABEL_CHANNEL_KEYWORDS = (
    "LABEL",
    "ENTERTAINMENT",
    "SMTOWN",
    "JYP",
    "YG",
    "HYBE",
    "VEVO",
    "OFFICIAL",
    "RECORDS",
    "MUSIC",
    "LLOUD",
    "RCA",
    "ATLANTIC",
    "COLUMBIA",
    "INTERSCOPE",
)

FAN_REPOST_PATTERNS = (
    re.compile(r"^(.+?)(?:UPTOWN|ARCHIVE|FAN|LIVE|VIDEOS?|CHANNEL|HD|OFFICIAL)$", re.IGNORECASE),
    re.compile(r"^(.+?)(?:Music|Videos?|Channel|Archive|Fan|Live|HD)$", re.IGNORECASE),
)

TITLE_ARTIST_DASH = re.compile(r"^([^-–—\[\(]+?)\s*[-–—]\s*")
TITLE_ARTIST_MV = re.compile(r"^\[MV\]\s*(.+?)\s*[-–—]\s*", re.IGNORECASE)
TITLE_ARTIST_QUOTED = re.compile(r"^['\"“”]([^'\"“”]+)['\"“”]?\s*[-–—]?\s*")

DATE_DIGITS = re.compile(r"^\d{8}$")


class IngestStatus(Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    REPAIRED = "repaired"
    FAILED = "failed"


class HuntStatus(Enum):
    SUCCESS = "success"
    SEARCH_FAILED = "search_failed"
    ALREADY_EXISTS = "already_exists"
    JUNK_FILTERED = "junk_filtered"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class IngestOutcome:
    status: IngestStatus
    reason: str = ""
    slug: Optional[str] = None
    artist: str = ""
    title: str = ""
    platform: str = ""


@dataclass
class HuntResult:
    status: HuntStatus
    source: SourceRecord
    reason: str = ""
    slug: Optional[str] = None
    platform: str = ""
    method: str = ""  # "manual_url" or "search"
    video_title: str = ""


@dataclass
class MissingEntry:
    """A source row no platform search could find."""

    artist: str
    title: str
    director: str = ""
    year: str = ""
    visual_hook: str = ""
    timestamp: str = ""


def is_pure_audio(title: Optional[str]) -> bool:
    lowered = (title or "").lower()
    return any(keyword in lowered for keyword in PURE_AUDIO_KEYWORDS)


def is_junk_video(title: Optional[str]) -> bool:
    lowered = (title or "").lower()
    for keyword in JUNK_BLOCKLIST:
        if keyword in lowered:
            logger.debug(f"Junk keyword '{keyword}' in '{title}'")
            return True
    return False


def negative_keywords(title: str) -> List[str]:
    lowered = title.lower()
    return [keyword for keyword in SEARCH_NEGATIVE_KEYWORDS if keyword in lowered]


def passes_gatekeeper(
    hit: SearchHit,
    exemptions: Sequence[str] = (),
    min_duration: int = 60,
    max_duration: int = 900,
) -> bool:
    """Whether a search hit looks like the official video.

    Args:
        hit: Search result to check.
        exemptions: Negative keywords the wanted title itself contains.
        min_duration: Shorter hits are teasers or shorts.
        max_duration: Longer hits are albums or loops, unless marked as a
            director's cut or short film.
    """
    for keyword in negative_keywords(hit.title):
        if not any(allowed in keyword for allowed in exemptions):
            logger.debug(f"Rejected '{hit.title}': contains '{keyword}'")
            return False

    if hit.duration:
        if hit.duration < min_duration:
            logger.debug(f"Rejected '{hit.title}': {hit.duration}s is too short")
            return False
        lowered = hit.title.lower()
        if hit.duration > max_duration and not any(m in lowered for m in LONG_FORM_MARKERS):
            logger.debug(f"Rejected '{hit.title}': {hit.duration}s is too long")
            return False
    return True


def build_search_query(artist: str, title: str, director: str = "") -> str:
    query = f"{artist} {title} official video".strip()
    return f"{query} {director}" if director else query


def _label_or_fan_channel(channel: str):
    """Whether the channel is a label, and the artist a fan channel is named after."""
    is_label = any(keyword in channel.upper() for keyword in LABEL_CHANNEL_KEYWORDS)
    for pattern in FAN_REPOST_PATTERNS:
        match = pattern.match(channel)
        if match and len(match.group(1)) > 2:
            return is_label, match.group(1).strip()
    return is_label, None


def _artist_from_title(raw_title: str) -> Optional[str]:
    match = TITLE_ARTIST_DASH.match(raw_title)
    if match and 1 < len(match.group(1)) < 50:
        return match.group(1).strip()
    match = TITLE_ARTIST_MV.match(raw_title)
    if match:
        return match.group(1).strip()
    match = TITLE_ARTIST_QUOTED.match(raw_title)
    if match:
        return match.group(1).strip()
    return None


def resolve_artist(uploader: Optional[str], raw_title: Optional[str]) -> str:
    """Work out the artist of a video from its channel and title.

    Known channels map through the alias table. Label and fan-repost channels
    do not name the artist, so it is read from the title (``Artist - Song``,
    ``[MV] Artist - Song``, ``"Artist" - Song``) or, failing that, from the
    fan channel's name.
    """
    raw_title = raw_title or ""
    channel = normalize_channel(uploader)
    artist = channel or ""

    is_label, fan_artist = _label_or_fan_channel(channel or "")
    if channel is None or is_label or fan_artist:
        from_title = _artist_from_title(raw_title)
        if from_title:
            artist = from_title
        elif fan_artist:
            artist = fan_artist

    return normalize_artist(artist)


def _parse_compact_date(value) -> Optional[str]:
    text = str(value or "").strip()
    if not DATE_DIGITS.match(text):
        return None
    return f"{text[:4]}-{text[4:6]}-{text[6:]}"


def parse_publish_date(
    upload_date: Optional[str],
    release_date: Optional[str] = None,
    today: Optional[datetime.date] = None,
) -> str:
    """ISO publish date from YYYYMMDD provider dates, else today."""
    parsed = _parse_compact_date(upload_date) or _parse_compact_date(release_date)
    if parsed:
        return parsed
    fallback = (today or datetime.date.today()).isoformat()
    logger.warning(f"No valid upload or release date, using {fallback}")
    return fallback


def build_content_record(
    metadata: VideoMetadata,
    credits: CreditRecord,
    video_url: Optional[str] = None,
    additional_tags: Optional[Sequence[str]] = None,
    curator_note: str = "",
    today: Optional[datetime.date] = None,
) -> ContentRecord:
    """Assemble a ContentRecord from fetched metadata; no I/O."""
    artist = resolve_artist(metadata.uploader, metadata.title)
    title = clean_title(metadata.title, artist)
    publish_date = parse_publish_date(metadata.upload_date, metadata.release_date, today)
    year = publish_date[:4]

    tags = [tag for tag in (additional_tags or []) if tag]
    if not tags:
        tags = default_tags(credits.director, year)

    return ContentRecord(
        slug=build_slug(year, artist or "unknown", title or "untitled"),
        title=title,
        artist=artist,
        video_url=video_url or metadata.url,
        publish_date=publish_date,
        credits=credits,
        tags=tags,
        curator_note=curator_note,
    )


def cover_slug(record: ContentRecord) -> str:
    """Slug without its year prefix, used for cover file names."""
    prefix = f"{record.year}-"
    return record.slug[len(prefix) :] if record.slug.startswith(prefix) else record.slug


def write_missing_report(path, entries: Iterable[MissingEntry]) -> int:
    """Merge ``entries`` into the JSON report at ``path``.

    Entries already reported for the same artist and title are not repeated.

    Returns:
        Number of entries in the report after merging.
    """
    path = Path(path)
    report = []
    if path.exists():
        try:
            report = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable missing report {path}: {e}")
            report = []

    seen = {(item.get("artist"), item.get("title")) for item in report}
    for entry in entries:
        key = (entry.artist, entry.title)
        if key not in seen:
            seen.add(key)
            report.append(asdict(entry))

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
    return len(report)


class IngestPipeline:
    """Fetch, normalise, extract and persist videos."""

    def __init__(
        self,
        provider: MetadataProvider,
        store: ContentStore,
        downloader: Optional[CoverDownloader] = None,
        config: Optional[PipelineConfig] = None,
        extractor: Optional[CreditExtractor] = None,
        sleep: Callable = asyncio.sleep,
    ):
        self.provider = provider
        self.store = store
        self.downloader = downloader
        self.config = config or PipelineConfig()
        self.extractor = extractor or CreditExtractor(self.config.extraction)
        self._sleep = sleep
        self.missing: List[MissingEntry] = []

    async def _cover_for(self, record: ContentRecord, metadata: VideoMetadata) -> str:
        primary, fallback = select_thumbnails(
            metadata.thumbnails, metadata.video_id, metadata.platform
        )
        if self.downloader is None or not self.config.fetch.download_covers:
            return primary or ""
        return await self.downloader.fetch_cover(record.year, cover_slug(record), primary, fallback)

    async def ingest(
        self,
        url: str,
        additional_tags: Optional[Sequence[str]] = None,
        curator_note: str = "",
        force: bool = False,
        repair_covers: bool = False,
    ) -> IngestOutcome:
        """Ingest one video URL.

        Args:
            url: YouTube or Vimeo URL.
            additional_tags: Tags to store instead of the derived ones.
            curator_note: Note written to the record.
            force: Overwrite an existing record with the same slug.
            repair_covers: Only re-download the cover of an existing record.

        Returns:
            IngestOutcome describing what happened.

        Raises:
            FetchError: If the provider cannot deliver metadata.
        """
        platform = detect_platform(url)
        video_id = extract_video_id(url)
        if not video_id:
            return IngestOutcome(IngestStatus.FAILED, f"invalid {platform} URL: {url}")

        logger.info(f"Processing [{platform}] {video_id} (force={force})")
        metadata = await self.provider.fetch(url)

        if is_pure_audio(metadata.title):
            logger.warning(f"Skipping pure audio upload: '{metadata.title}'")
            return IngestOutcome(
                IngestStatus.SKIPPED, "pure_audio", title=metadata.title, platform=platform
            )

        credits = self.extractor.extract(metadata.description)
        record = build_content_record(
            metadata,
            credits,
            video_url=url,
            additional_tags=additional_tags,
            curator_note=curator_note,
        )
        outcome = IngestOutcome(
            IngestStatus.SUCCESS,
            slug=record.slug,
            artist=record.artist,
            title=record.title,
            platform=platform,
        )

        if repair_covers:
            return await self._repair_cover(record, metadata, outcome)

        if self.store.exists(record.slug) and not force:
            logger.warning(f"{record.file_name} exists, skipping (use force to overwrite)")
            outcome.status = IngestStatus.SKIPPED
            outcome.reason = "already_exists"
            return outcome

        record.cover = await self._cover_for(record, metadata)
        self.store.save(record)
        logger.info(f"Wrote {record.file_name} ({record.artist} - {record.title})")
        return outcome

    async def _repair_cover(
        self, record: ContentRecord, metadata: VideoMetadata, outcome: IngestOutcome
    ) -> IngestOutcome:
        if not self.store.exists(record.slug):
            outcome.status = IngestStatus.SKIPPED
            outcome.reason = "no_content_file"
            return outcome

        if self.downloader is not None:
            local = self.downloader.public_dir / cover_url_path(record.year, cover_slug(record)).lstrip("/")
            if local.is_file() and local.stat().st_size > 0:
                outcome.status = IngestStatus.SKIPPED
                outcome.reason = "cover_already_exists"
                return outcome

        cover = await self._cover_for(record, metadata)
        existing = self.store.load(record.slug)
        if cover and existing.cover != cover:
            existing.cover = cover
            self.store.save(existing)
        outcome.status = IngestStatus.REPAIRED
        return outcome

    async def find_video(self, row: SourceRecord) -> Optional[SearchHit]:
        """Search YouTube, then Vimeo, for the official video of a row."""
        query = build_search_query(row.artist, row.title, row.director)
        exemptions = negative_keywords(row.title)
        fetch = self.config.fetch

        for platform, limit in (("youtube", fetch.search_results), ("vimeo", 1)):
            try:
                hits = await self.provider.search(query, platform=platform, max_results=limit)
            except CreditsError as e:
                logger.warning(f"[{platform}] search failed for '{query}': {e}")
                continue
            for hit in hits:
                if passes_gatekeeper(
                    hit, exemptions, fetch.min_duration_seconds, fetch.max_duration_seconds
                ):
                    logger.info(f"[{platform}] found '{hit.title}' for '{query}'")
                    return hit
        return None

    async def hunt_row(self, row: SourceRecord) -> HuntResult:
        """Find and ingest the video of one source row."""
        if not row.has_required_fields:
            return HuntResult(HuntStatus.SKIPPED, row, reason="missing required source fields")

        try:
            if row.target_url:
                url, platform, method, video_title = (
                    row.target_url,
                    detect_platform(row.target_url),
                    "manual_url",
                    f"{row.artist} - {row.title}",
                )
            else:
                hit = await self.find_video(row)
                if hit is None:
                    self.missing.append(
                        MissingEntry(
                            artist=row.artist,
                            title=row.title,
                            director=row.director,
                            year=row.year,
                            visual_hook=row.visual_hook,
                            timestamp=datetime.datetime.now().isoformat(timespec="seconds"),
                        )
                    )
                    return HuntResult(HuntStatus.SEARCH_FAILED, row, reason="not found on youtube or vimeo")
                if is_junk_video(hit.title):
                    return HuntResult(
                        HuntStatus.JUNK_FILTERED,
                        row,
                        platform=hit.platform,
                        method="search",
                        video_title=hit.title,
                    )
                url, platform, method, video_title = hit.url, hit.platform, "search", hit.title

            existing = self.store.find_video(extract_video_id(url) or "")
            if existing:
                return HuntResult(
                    HuntStatus.ALREADY_EXISTS, row, slug=existing, platform=platform, method=method
                )

            outcome = await self.ingest(url, additional_tags=visual_hook_to_tags(row.visual_hook))
            status = HuntStatus.SUCCESS
            if outcome.status == IngestStatus.SKIPPED:
                status = HuntStatus.SKIPPED
            elif outcome.status == IngestStatus.FAILED:
                status = HuntStatus.ERROR
            return HuntResult(
                status,
                row,
                reason=outcome.reason,
                slug=outcome.slug,
                platform=platform,
                method=method,
                video_title=video_title,
            )
        except (CreditsError, OSError) as e:
            logger.error(f"{row.artist} - {row.title}: {e}")
            return HuntResult(HuntStatus.ERROR, row, reason=str(e))

    async def hunt(
        self,
        rows: Sequence[SourceRecord],
        on_result: Optional[Callable[[HuntResult], None]] = None,
    ) -> List[HuntResult]:
        """Process rows one at a time with a randomised pause between them."""
        results = []
        fetch = self.config.fetch
        for index, row in enumerate(rows):
            result = await self.hunt_row(row)
            results.append(result)
            if on_result:
                on_result(result)
            if index < len(rows) - 1:
                delay = jitter_delay(fetch.min_delay_seconds, fetch.max_delay_seconds)
                logger.debug(f"Waiting {delay:.1f}s before the next row")
                await self._sleep(delay)
        return results
