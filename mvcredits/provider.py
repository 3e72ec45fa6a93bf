"""Video metadata providers."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yt_dlp
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import FetchConfig
from .exceptions import FetchError
from .utils import detect_platform

logger = logging.getLogger(__name__)

SEARCH_PREFIXES = {"youtube": "ytsearch", "vimeo": "vimeosearch"}


@dataclass
class Thumbnail:
    url: str
    width: Optional[int] = None
    height: Optional[int] = None
    preference: Optional[int] = None

    @property
    def area(self) -> int:
        return (self.width or 0) * (self.height or 0)


@dataclass
class VideoMetadata:
    """What a provider reports about one video."""

    video_id: str
    url: str
    title: str = ""
    description: str = ""
    uploader: str = ""
    upload_date: Optional[str] = None  # YYYYMMDD
    release_date: Optional[str] = None  # YYYYMMDD
    duration: Optional[int] = None
    platform: str = "youtube"
    thumbnails: List[Thumbnail] = field(default_factory=list)


@dataclass
class SearchHit:
    video_id: str
    url: str
    title: str = ""
    uploader: str = ""
    duration: Optional[int] = None
    platform: str = "youtube"


class MetadataProvider(ABC):
    """Source of video metadata and search results."""

    @abstractmethod
    async def fetch(self, url: str) -> VideoMetadata:
        """Fetch metadata for a video URL.

        Raises:
            FetchError: If the provider cannot deliver metadata.
        """

    @abstractmethod
    async def search(
        self, query: str, platform: str = "youtube", max_results: int = 5
    ) -> List[SearchHit]:
        """Search a platform, best hits first."""


def _thumbnails_from_info(info: Dict[str, Any]) -> List[Thumbnail]:
    thumbnails = []
    for entry in info.get("thumbnails") or []:
        if not entry or not entry.get("url"):
            continue
        thumbnails.append(
            Thumbnail(
                url=entry["url"],
                width=entry.get("width"),
                height=entry.get("height"),
                preference=entry.get("preference"),
            )
        )
    if not thumbnails and info.get("thumbnail"):
        thumbnails.append(Thumbnail(url=info["thumbnail"]))
    return thumbnails


def metadata_from_info(info: Dict[str, Any], url: str) -> VideoMetadata:
    """Convert a yt-dlp info dict to VideoMetadata."""
    return VideoMetadata(
        video_id=str(info.get("id") or ""),
        url=info.get("webpage_url") or url,
        title=info.get("title") or "",
        description=info.get("description") or "",
        uploader=info.get("uploader") or info.get("channel") or "",
        upload_date=info.get("upload_date"),
        release_date=info.get("release_date"),
        duration=info.get("duration"),
        platform=detect_platform(info.get("webpage_url") or url),
        thumbnails=_thumbnails_from_info(info),
    )


class YtDlpMetadataProvider(MetadataProvider):
    """Metadata provider backed by yt-dlp.

    Network settings come from the FetchConfig passed in; nothing is read from
    the environment.
    """

    def __init__(self, config: Optional[FetchConfig] = None):
        self.config = config or FetchConfig()

    def _ydl_options(self, flat: bool = False) -> Dict[str, Any]:
        opts: Dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "socket_timeout": self.config.timeout_seconds,
        }
        if flat:
            opts["extract_flat"] = "in_playlist"
        if self.config.proxy:
            opts["proxy"] = self.config.proxy
        if self.config.cookies_file:
            opts["cookiefile"] = self.config.cookies_file
        return opts

    def _extract(self, target: str, flat: bool) -> Dict[str, Any]:
        with yt_dlp.YoutubeDL(self._ydl_options(flat)) as ydl:
            return ydl.extract_info(target, download=False) or {}

    async def _extract_with_retry(self, target: str, flat: bool = False) -> Dict[str, Any]:
        loop = asyncio.get_running_loop()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max(1, self.config.max_retries)),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                retry=retry_if_exception_type(yt_dlp.utils.DownloadError),
            ):
                with attempt:
                    return await loop.run_in_executor(None, self._extract, target, flat)
        except RetryError as e:
            raise FetchError(f"yt-dlp failed for {target}: {e.last_attempt.exception()}")
        except yt_dlp.utils.YoutubeDLError as e:
            raise FetchError(f"yt-dlp failed for {target}: {e}")
        return {}

    async def fetch(self, url: str) -> VideoMetadata:
        logger.debug(f"Fetching metadata for {url}")
        info = await self._extract_with_retry(url)
        if not info.get("id"):
            raise FetchError(f"No metadata returned for {url}")
        return metadata_from_info(info, url)

    async def search(
        self, query: str, platform: str = "youtube", max_results: int = 5
    ) -> List[SearchHit]:
        prefix = SEARCH_PREFIXES.get(platform)
        if prefix is None:
            raise ValueError(f"Unsupported search platform '{platform}'")

        info = await self._extract_with_retry(f"{prefix}{max_results}:{query}", flat=True)
        hits = []
        for entry in info.get("entries") or []:
            if not entry or not entry.get("id"):
                continue
            url = entry.get("url") or entry.get("webpage_url") or ""
            if platform == "youtube" and not url.startswith("http"):
                url = f"https://www.youtube.com/watch?v={entry['id']}"
            hits.append(
                SearchHit(
                    video_id=str(entry["id"]),
                    url=url,
                    title=entry.get("title") or "",
                    uploader=entry.get("uploader") or entry.get("channel") or "",
                    duration=entry.get("duration"),
                    platform=platform,
                )
            )
        logger.info(f"{platform} search '{query}' returned {len(hits)} results")
        return hits
