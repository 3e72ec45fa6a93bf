"""Utilities and helper functions."""

import logging
import random
import re
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

YOUTUBE_ID_PATTERN = re.compile(r"(?:v=|/)([\w-]{11})(?:\?|&|/|$)")
VIMEO_ID_PATTERN = re.compile(r"vimeo\.com/(?:video/)?(\d+)")


def setup_logging(
    level: int = logging.INFO,
    log_file: str = "mv_credits.log",
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    console_output: bool = True,
) -> None:
    """Setup logging configuration.

    Parameters
    ----------
    level: int
        Logging level.
    log_file: str
        Path to the log file.
    max_bytes: int
        Maximum size in bytes before rotating the log file.
    backup_count: int
        Number of rotated log files to keep.
    console_output: bool
        Whether to also log to the console.
    """

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)

    file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    logging.getLogger("yt_dlp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def extract_video_id(url: str) -> Optional[str]:
    """Return the YouTube (11 characters) or Vimeo (numeric) id of a video URL."""
    if not url:
        return None
    if "vimeo.com" in url:
        match = VIMEO_ID_PATTERN.search(url)
        return match.group(1) if match else None
    match = YOUTUBE_ID_PATTERN.search(url)
    if match:
        return match.group(1)
    match = VIMEO_ID_PATTERN.search(url)
    return match.group(1) if match else None


def detect_platform(url: str) -> str:
    """Guess the hosting platform from a video URL."""
    return "vimeo" if "vimeo.com" in (url or "") else "youtube"


def jitter_delay(min_seconds: float, max_seconds: float) -> float:
    """Randomised pause length used between rate-limited requests."""
    if max_seconds <= min_seconds:
        return min_seconds
    return random.uniform(min_seconds, max_seconds)
