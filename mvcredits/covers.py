"""Cover image selection and download."""

import functools
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import FetchConfig
from .provider import Thumbnail

logger = logging.getLogger(__name__)

YOUTUBE_THUMBNAIL = "https://img.youtube.com/vi/{video_id}/{name}.jpg"
VIMEO_THUMBNAIL = "https://vumbnail.com/{video_id}.jpg"


def _compare_thumbnails(a: Thumbnail, b: Thumbnail) -> int:
    # preference wins when both carry one, otherwise resolution
    if a.preference is not None and b.preference is not None:
        return b.preference - a.preference
    return b.area - a.area


def select_thumbnails(
    thumbnails: List[Thumbnail], video_id: str, platform: str = "youtube"
) -> Tuple[Optional[str], Optional[str]]:
    """Pick the best thumbnail URL and a fallback.

    Args:
        thumbnails: Thumbnails reported by the provider.
        video_id: Platform id of the video.
        platform: ``youtube`` or ``vimeo``.

    Returns:
        ``(primary, fallback)``; either may be None.
    """
    if not thumbnails:
        if platform == "vimeo":
            return VIMEO_THUMBNAIL.format(video_id=video_id), None
        return (
            YOUTUBE_THUMBNAIL.format(video_id=video_id, name="maxresdefault"),
            YOUTUBE_THUMBNAIL.format(video_id=video_id, name="hqdefault"),
        )

    ranked = sorted(thumbnails, key=functools.cmp_to_key(_compare_thumbnails))
    primary = ranked[0].url
    if platform == "youtube" and "maxresdefault" in primary:
        fallback = YOUTUBE_THUMBNAIL.format(video_id=video_id, name="hqdefault")
    else:
        fallback = ranked[1].url if len(ranked) > 1 else None
    return primary, fallback


def cover_url_path(year: str, cover_slug: str) -> str:
    """Site path of a downloaded cover."""
    return f"/covers/{year}/{cover_slug}.jpg"


class CoverDownloader:
    """Download covers into ``{public_dir}/covers/{year}/``.

    Files smaller than ``zombie_threshold_bytes`` are placeholder images
    served for removed resolutions ("zombies"); they are deleted and the
    fallback URL is tried instead.
    """

    def __init__(self, public_dir, config: Optional[FetchConfig] = None):
        self.public_dir = Path(public_dir)
        self.config = config or FetchConfig()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
            proxy=self.config.proxy,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _get(self, client: httpx.AsyncClient, url: str) -> bytes:
        response = await client.get(url)
        response.raise_for_status()
        return response.content

    async def download(self, url: str, destination: Path, client: httpx.AsyncClient) -> bool:
        """Save ``url`` to ``destination``; False for failures and zombies."""
        try:
            content = await self._get(client, url)
        except httpx.HTTPError as e:
            logger.warning(f"Cover download failed for {url}: {e}")
            return False

        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(content)

        size = destination.stat().st_size
        if size < self.config.zombie_threshold_bytes:
            logger.warning(f"Zombie cover ({size} bytes) from {url}, deleting")
            destination.unlink()
            return False
        return True

    async def fetch_cover(
        self, year: str, cover_slug: str, primary: Optional[str], fallback: Optional[str] = None
    ) -> str:
        """Download a cover and return the value for the record's cover field.

        Returns:
            The local ``/covers/...`` path when a usable file was saved,
            otherwise the remote fallback URL, then the primary one.
        """
        if not primary:
            return ""
        local_path = cover_url_path(year, cover_slug)
        destination = self.public_dir / local_path.lstrip("/")

        async with self._client() as client:
            for url in (primary, fallback):
                if not url:
                    continue
                if await self.download(url, destination, client):
                    logger.info(f"Saved cover {destination}")
                    return local_path

        logger.warning(f"No usable cover for {cover_slug}, keeping remote URL")
        return fallback or primary
