"""Find content records that point at the same video or have near-identical titles."""

import logging
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import jellyfish

from .records import ContentRecord
from .utils import extract_video_id

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY_THRESHOLD = 0.85

_SEPARATORS = re.compile(r"[-–—_]")
_PARENTHESES = re.compile(r"\(.*?\)")
_BRACKETS = re.compile(r"\[.*?\]")
_NOISE_WORDS = re.compile(r"official|music video|video|mv|lyric|lyrics|audio", re.IGNORECASE)
_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class DuplicateGroup:
    """Records believed to be the same video.

    For fuzzy groups ``similarity`` is the lowest similarity between the
    first record and any other member.
    """

    kind: str  # "exact" or "fuzzy"
    records: List[ContentRecord] = field(default_factory=list)
    video_id: Optional[str] = None
    similarity: float = 1.0

    @property
    def slugs(self) -> List[str]:
        return [record.slug for record in self.records]


def normalize_title(title: Optional[str]) -> str:
    """Reduce a title to the words that identify the song."""
    text = (title or "").lower()
    text = _SEPARATORS.sub(" ", text)
    text = _PARENTHESES.sub("", text)
    text = _BRACKETS.sub("", text)
    text = _NOISE_WORDS.sub("", text)
    text = _NON_WORD.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def similarity_ratio(a: str, b: str) -> float:
    """1 minus the Levenshtein distance over the longer length; 0.0 for two empty strings."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return 1.0 - jellyfish.levenshtein_distance(a, b) / longest


def find_exact_duplicates(records: Sequence[ContentRecord]) -> List[DuplicateGroup]:
    """Group records sharing a video id, in first-seen order."""
    by_id: "OrderedDict[str, List[ContentRecord]]" = OrderedDict()
    for record in records:
        video_id = extract_video_id(record.video_url)
        if video_id:
            by_id.setdefault(video_id, []).append(record)

    return [
        DuplicateGroup(kind="exact", records=group, video_id=video_id)
        for video_id, group in by_id.items()
        if len(group) > 1
    ]


def find_fuzzy_duplicates(
    records: Sequence[ContentRecord], threshold: float = DEFAULT_SIMILARITY_THRESHOLD
) -> List[DuplicateGroup]:
    """Group records whose normalised titles are at least ``threshold`` similar.

    Each record anchors a group with every later, not yet grouped record
    similar to it; a record joins at most one group.
    """
    titles = [normalize_title(record.title) for record in records]
    grouped = set()
    groups = []

    for i, anchor in enumerate(records):
        if i in grouped:
            continue
        members = [anchor]
        scores = []
        for j in range(i + 1, len(records)):
            if j in grouped:
                continue
            score = similarity_ratio(titles[i], titles[j])
            if score >= threshold:
                members.append(records[j])
                scores.append(score)
                grouped.add(j)

        if len(members) > 1:
            grouped.add(i)
            groups.append(DuplicateGroup(kind="fuzzy", records=members, similarity=min(scores)))

    logger.debug(f"Found {len(groups)} fuzzy duplicate groups among {len(records)} records")
    return groups
