"""Channel, artist and song title normalisation.

Channel names on video platforms rarely equal the artist: fan archives
("Jungle4eva"), label channels and "VEVO" suffixes all need mapping back to
the credited artist. Titles carry the artist name, quality tags and
"Official Video" markers that do not belong in a song title.
"""

import logging
import re
from types import MappingProxyType
from typing import Mapping, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

# Lowercased channel name -> artist. None means the channel is a label or
# collective and the artist has to be read from the video title instead.
CHANNEL_ALIASES: Mapping[str, Optional[str]] = MappingProxyType(
    {
        # Fan channels
        "jungle4eva": "Jungle",
        "pp_rocksxx": "PinkPantheress",
        "asaprockyuptown": "A$AP Rocky",
        "gambinoarchive": "Childish Gambino",
        # Labels and collectives
        "foreign family collective": None,
        # Band names that equal their channel
        "the shoes": "The Shoes",
    }
)

CHANNEL_NOISE_SUFFIXES: Tuple[Pattern[str], ...] = tuple(
    re.compile(pattern + r"\s*$", re.IGNORECASE)
    for pattern in (
        r"4eva",
        r"VEVO",
        r"Official",
        r"Music",
        r"TV",
        r"HD",
        r"Videos?",
        r"Channel",
        r"Archive",
        r"Fan",
        r"Live",
        r"Uptown",
    )
)

# Lowercased artist -> canonical stylisation
ARTIST_STYLES: Mapping[str, str] = MappingProxyType(
    {
        "charli xcx": "Charli XCX",
        "asap rocky": "A$AP Rocky",
        "a$ap rocky": "A$AP Rocky",
        "asaprocky": "A$AP Rocky",
        "asaprockyuptown": "A$AP Rocky",
        "rm": "RM",
        "bts": "BTS",
        "blackpink": "BLACKPINK",
        "twice": "TWICE",
        "txt": "TXT",
        "itzy": "ITZY",
        "nct": "NCT",
        "exo": "EXO",
        "idles": "IDLES",
        "haim": "HAIM",
        "muna": "MUNA",
        "chvrches": "CHVRCHES",
        "jpegmafia": "JPEGMAFIA",
        "mgmt": "MGMT",
        "sbtrkt": "SBTRKT",
        "fontaines dc": "Fontaines D.C.",
        "fontaines d.c.": "Fontaines D.C.",
        "bicep": "BICEP",
        "childish gambino": "Childish Gambino",
        "gambinoarchive": "Childish Gambino",
        "antslive": "AntsLive",
        "fka twigs": "FKA twigs",
        "mia": "M.I.A.",
        "m.i.a": "M.I.A.",
        "m.i.a.": "M.I.A.",
    }
)

_QUALITY_TAGS = (
    r"HD|4K|8K|UHD|FHD|\d{3,4}p|\d{2,3}\s?fps|DTS[-\s]HD|Dolby(?:\s+Atmos)?|Atmos|\d\.\d(?:\s+Surround)?"
)

TITLE_NOISE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"[\[(]\s*CLIP\s+OFFICIEL\s*[\])]|\bCLIP\s+OFFICIEL\b", re.IGNORECASE),
    re.compile(r"[\[(]\s*Official\s+Video\s*[\])]", re.IGNORECASE),
    re.compile(r"[\[(]\s*(?:" + _QUALITY_TAGS + r")\s*[\])]", re.IGNORECASE),
    re.compile(r"\b(?:HD|4K|8K|UHD|FHD|\d{3,4}p|\d{2,3}fps|DTS-HD|Dolby\s+Atmos)\b", re.IGNORECASE),
)

FALLBACK_QUALITY_PATTERN = re.compile(r"[\[(]?\s*\b(?:HD|4K|8K|UHD|FHD)\b\s*[\])]?", re.IGNORECASE)

MV_PREFIX = re.compile(r"^\[MV\]\s*", re.IGNORECASE)
ARTIST_PREFIX = re.compile(r"^([^-–—]+?)\s*[-–—]\s*")
LEADING_RESIDUE = re.compile(r"^[,\s\-–—]+")
QUOTED_TITLE = re.compile(r"(?<!\w)['‘’\"“”]([^'‘’\"“”]{2,})['‘’\"“”](?!\w)")
LEADING_SEPARATOR = re.compile(r"^[-:,–—]\s*")
FEATURING_SUFFIX = re.compile(
    r"\s*(?:[(\[]\s*(?:feat\.?|ft\.?|featuring|with)\s+[^)\]]+[)\]]"
    r"|\b(?:feat\.|ft\.|featuring)\s+[^)\]]+)\s*$",
    re.IGNORECASE,
)

SUFFIX_MARKERS: Tuple[Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"\s*[(\[]?\s*Official\s*(?:Music\s*)?Video\s*[)\]]?\s*$",
        r"\s*[(\[]?\s*Official\s*MV\s*[)\]]?\s*$",
        r"\s*[(\[]\s*MV\s*[)\]]\s*$",
        r"\s*\bM/V\s*$",
        r"\s*[-:–—]\s*Official\s*(?:Music\s*)?Video\s*$",
        r"\s*[-:–—]\s*Official\s*MV\s*$",
        r"\s*\[[^\]]*Official[^\]]*\]",
        r"\s*\([^)]*Official[^)]*\)",
        r"\s*[(\[]\s*Explicit\s*[)\]]\s*$",
        r"\s+Explicit\s*$",
    )
)

EDGE_PUNCTUATION = re.compile(r"^[-–—,:\s]+|[-–—,:\s]+$")
MULTIPLE_SPACES = re.compile(r"\s{2,}")


def _is_suffix_boundary(name: str, start: int) -> bool:
    """A lowercase suffix glued to a lowercase letter is part of the word ("Stefan")."""
    return not (start > 0 and name[start].islower() and name[start - 1].islower())


def normalize_channel(channel_name: Optional[str]) -> Optional[str]:
    """Map a channel name to the artist it publishes for.

    Args:
        channel_name: Uploader name reported by the platform.

    Returns:
        The artist name, None when the channel is known not to name the
        artist, or the input unchanged when nothing applies.
    """
    if not channel_name:
        return None

    key = channel_name.strip().lower()
    if key in CHANNEL_ALIASES:
        return CHANNEL_ALIASES[key]

    original = channel_name.strip()
    for pattern in CHANNEL_NOISE_SUFFIXES:
        match = pattern.search(original)
        if not match or not _is_suffix_boundary(original, match.start()):
            continue
        stripped = original[: match.start()].strip()
        if len(stripped) <= 2:
            continue
        logger.info(f"Cleaned channel '{channel_name}' -> '{stripped}'")
        return CHANNEL_ALIASES.get(stripped.lower(), stripped)

    return channel_name


def normalize_artist(name: Optional[str]) -> str:
    """Return the canonical stylisation of an artist name."""
    if not name:
        return ""
    return ARTIST_STYLES.get(name.strip().lower(), name)


def _strip_patterns(text: str, patterns) -> str:
    for pattern in patterns:
        text = pattern.sub(" ", text)
    return MULTIPLE_SPACES.sub(" ", text).strip()


def _starts_with_artist(prefix: str, artist: str) -> bool:
    """True when ``prefix`` is the artist, or the artist plus collaborators."""
    prefix_lower = prefix.lower()
    for name in {artist.lower(), artist.lower().rstrip(".")}:
        if not name or not prefix_lower.startswith(name):
            continue
        rest = prefix_lower[len(name) :]
        if not rest or not rest[0].isalnum():
            return True
    return False


def _remove_artist_mentions(title: str, artist: str) -> str:
    escaped = re.escape(artist)
    title = re.sub(rf"^{escaped}\s*\|\s*", "", title, flags=re.IGNORECASE)
    title = re.sub(rf"^{escaped}\s*[-:,–—]\s*", "", title, flags=re.IGNORECASE)
    title = re.sub(rf"\s*[-:,–—]\s*{escaped}$", "", title, flags=re.IGNORECASE)
    title = re.sub(rf"(?<!\w){escaped}\s*[,&]\s*", "", title, flags=re.IGNORECASE)
    return title


def _fallback_title(original: str) -> Optional[str]:
    """Segment after the last dash separator, without bracketed tails."""
    segments = re.split(r"[-–—]", original)
    if len(segments) < 2:
        return None
    tail = re.split(r"[\[(]", segments[-1])[0]
    tail = FALLBACK_QUALITY_PATTERN.sub(" ", tail)
    tail = MULTIPLE_SPACES.sub(" ", tail).strip()
    return tail or None


def clean_title(raw_title: Optional[str], artist_name: Optional[str] = "") -> str:
    """Reduce a platform video title to the song title.

    When cleaning leaves nothing, or only the artist, the segment after the
    last dash of ``raw_title`` is used instead, provided cleaning would not
    change that segment again.

    Args:
        raw_title: Title as published on the platform.
        artist_name: Artist already resolved for the video.

    Returns:
        The cleaned song title. Running the cleaner on its own output does
        not change it.
    """
    if not raw_title:
        return ""
    artist = (artist_name or "").strip()
    title = _clean_passes(raw_title.strip(), artist)

    if not title or (artist and title.lower() == artist.lower()):
        fallback = _fallback_title(raw_title)
        if fallback and _clean_passes(fallback, artist) == fallback:
            logger.debug(f"Fell back to '{fallback}' for '{raw_title}'")
            title = fallback

    return title


def _clean_passes(title: str, artist: str) -> str:
    title = _strip_patterns(title, TITLE_NOISE_PATTERNS)
    title = MV_PREFIX.sub("", title)

    if artist:
        prefix_match = ARTIST_PREFIX.match(title)
        if prefix_match and _starts_with_artist(prefix_match.group(1).strip(), artist):
            logger.debug(f"Removed artist prefix '{prefix_match.group(1)}' from '{title}'")
            title = title[prefix_match.end() :]

    title = LEADING_RESIDUE.sub("", title)

    quoted = QUOTED_TITLE.search(title)
    if quoted:
        title = quoted.group(1).strip()
    else:
        if artist:
            title = _remove_artist_mentions(title, artist)
        title = LEADING_SEPARATOR.sub("", title)

    # Suffix markers and a trailing featuring credit can hide each other,
    # so strip both until nothing changes.
    previous = None
    while title != previous:
        previous = title
        for pattern in SUFFIX_MARKERS:
            title = pattern.sub("", title)
        if not quoted:
            title = FEATURING_SUFFIX.sub("", title)
        title = EDGE_PUNCTUATION.sub("", title)
        title = MULTIPLE_SPACES.sub(" ", title).strip()

    return title
