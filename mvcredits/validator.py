"""Accept/reject gate for candidate director names.

Credit lines in video descriptions sit next to each other, so a loose match
on "Director" easily captures "Director of Photography: ..." or the tail of
an "Assistant Director" line. Every candidate passes through ``validate``
before it becomes a credit.
"""

import re
from typing import Dict, FrozenSet, Optional

# Substrings of other crew roles. Matched against the lowercased candidate,
# so short entries also reject names containing them ("art" in "Martin").
DIRECTOR_BLOCKLIST: FrozenSet[str] = frozenset(
    {
        "assistant",
        "rep",
        "executive",
        "photography",
        "dop",
        "producer",
        "editor",
        "production",
        "commissioner",
        "creative",
        "anim",
        "coordinator",
        "manager",
        "supervisor",
        "associate",
        "casting",
        "technical",
        "music",
        "art",
        "cinematographer",
        "videographer",
        "camera",
    }
)

ROLE_BLOCKLISTS: Dict[str, FrozenSet[str]] = {"director": DIRECTOR_BLOCKLIST}

EDGE_PUNCTUATION = re.compile(r"^[-–—:.\s]+|[-–—:.\s]+$")
FUNCTION_WORD_START = re.compile(
    r"^(?:the|a|an|is|this|official|music|video|album|song)\b", re.IGNORECASE
)

DIRECTOR_MIN_LENGTH = 2
DIRECTOR_MAX_LENGTH = 50


def strip_edge_punctuation(text: str) -> str:
    """Remove dashes, colons, dots and whitespace from both ends."""
    return EDGE_PUNCTUATION.sub("", text)


def validate(
    candidate: Optional[str],
    role: str = "director",
    min_length: int = DIRECTOR_MIN_LENGTH,
    max_length: int = DIRECTOR_MAX_LENGTH,
) -> Optional[str]:
    """Validate a candidate name extracted for ``role``.

    Args:
        candidate: Raw text captured by an extraction pattern.
        role: Credit role the candidate was captured for.
        min_length: Shortest accepted name after trimming.
        max_length: Longest accepted name after trimming.

    Returns:
        The trimmed name, or None when the candidate is rejected.
    """
    if role not in ROLE_BLOCKLISTS:
        raise ValueError(f"No validation rules for role '{role}'")

    if not candidate or not candidate.strip():
        return None

    lowered = candidate.lower()
    if any(term in lowered for term in ROLE_BLOCKLISTS[role]):
        return None

    cleaned = strip_edge_punctuation(candidate)

    if len(cleaned) < min_length or len(cleaned) > max_length:
        return None

    if FUNCTION_WORD_START.match(cleaned):
        return None

    return cleaned
