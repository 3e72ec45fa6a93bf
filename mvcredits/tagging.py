"""Taxonomy tags derived from the Visual_Hook column and from credits."""

import logging
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from .slug_matcher import slugify

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"

# Visual hooks with a hand-picked tag set
EXACT_HOOK_TAGS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Era-Defining Internet Panopticon": ("meta", "crowd-scene", "synchronized", "social-commentary"),
        "Manic Spitting Montage": ("rapid-editing", "performance", "high-energy", "urban"),
        "Surreal Office Maze": ("surreal", "narrative", "office-setting", "dystopian"),
        "Robot Sextape Sci-Fi": ("sci-fi", "vfx-heavy", "surreal", "provocative"),
        "Stone Skipping Physics": ("vfx-heavy", "nature", "abstract", "slow-motion"),
        "Alpine Rap Stunt": ("action-stunts", "nature", "performance", "extreme-sports"),
        "Deepfake Kid Courtroom": ("vfx-heavy", "narrative", "social-commentary", "political"),
        "Pop Star Life Cycle": ("narrative", "meta", "performance"),
        "Noir Social Realism": ("black-and-white", "narrative", "social-commentary", "cinematic"),
        "Melting Face Horror": ("vfx-heavy", "horror", "body-horror", "surreal"),
        "Infinite Stop-Motion Loop": ("stop-motion", "loop", "animation", "abstract"),
        "Polish Folk Surrealism": ("surreal", "folk-art", "cultural", "narrative"),
        "Liquid Choreography": ("dance-choreography", "vfx-heavy", "synchronized", "fluid"),
        "Ballroom Dance Narrative": ("dance-choreography", "narrative", "ballroom", "cultural"),
        "Suburban Surrealism": ("surreal", "suburban", "social-commentary"),
        "Afro-Surrealist Tableau": ("surreal", "cultural", "tableaux-vivants", "afrofuturism"),
        "Hyper-Pop Anime Mixed Media": ("mixed-media", "anime-style", "maximalist", "colorful"),
        "One-Shot Desert Ride": ("one-take", "desert", "action", "vehicle"),
        "Reverse Body Horror": ("reverse-motion", "body-horror", "horror", "vfx-heavy"),
        "Cinematic Car Time-Lapse": ("time-lapse", "vehicle", "cinematic", "narrative"),
        "Noir Monochrome Reveal": ("black-and-white", "reveal", "minimalist", "artistic"),
        "West Coast Cultural Victory": ("cultural", "political", "social-commentary", "celebration"),
        "Bangkok Cyberpunk Choreography": ("cyberpunk", "dance-choreography", "urban", "neon-lights"),
    }
)

# (keywords, tag) tried in order; every matching entry contributes its tag
KEYWORD_TAGS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("choreography", "dance", "dancing"), "dance-choreography"),
    (("one-shot", "one-take", "single take"), "one-take"),
    (("surreal", "surrealism"), "surreal"),
    (("black and white", "monochrome", "noir"), "black-and-white"),
    (("animation", "animated"), "animation"),
    (("stop-motion",), "stop-motion"),
    (("vfx", "cgi", "visual effects"), "vfx-heavy"),
    (("narrative", "story"), "narrative"),
    (("abstract",), "abstract"),
    (("performance",), "performance"),
    (("dystopian", "dystopia"), "dystopian"),
    (("cyberpunk", "cyber"), "cyberpunk"),
    (("horror",), "horror"),
    (("reverse", "backwards"), "reverse-motion"),
    (("time-lapse", "timelapse"), "time-lapse"),
    (("slow-motion", "slow motion"), "slow-motion"),
    (("mixed media", "mixed-media"), "mixed-media"),
    (("anime",), "anime-style"),
    (("desert",), "desert"),
    (("urban", "city"), "urban"),
    (("nature", "natural"), "nature"),
    (("office",), "office-setting"),
    (("stunt", "stunts", "action"), "action-stunts"),
    (("synchronized", "sync"), "synchronized"),
    (("crowd",), "crowd-scene"),
    (("meta",), "meta"),
)


def visual_hook_to_tags(visual_hook: Optional[str]) -> List[str]:
    """Map a Visual_Hook description to taxonomy tags.

    Exact hooks use their curated tag set. Otherwise every keyword group found
    in the hook adds its tag, in table order. No hit gives ``["uncategorized"]``.
    """
    if not visual_hook or not visual_hook.strip():
        logger.warning("Empty Visual_Hook provided")
        return [UNCATEGORIZED]

    hook = visual_hook.strip()
    if hook in EXACT_HOOK_TAGS:
        return list(EXACT_HOOK_TAGS[hook])

    lowered = hook.lower()
    tags: List[str] = []
    for keywords, tag in KEYWORD_TAGS:
        if tag not in tags and any(keyword in lowered for keyword in keywords):
            tags.append(tag)

    if not tags:
        logger.warning(f"No tags found for Visual_Hook: '{visual_hook}'")
        return [UNCATEGORIZED]
    return tags


def decade_tag(year: Optional[str]) -> Optional[str]:
    """``2016`` -> ``2010s``."""
    if not year or len(year) < 4 or not year[:4].isdigit():
        return None
    return f"{year[:3]}0s"


def default_tags(director: Optional[str], year: Optional[str]) -> List[str]:
    """Tags for records without a visual hook.

    A director tag plus the decade as context; without a director the record
    is ``uncategorized``.
    """
    director_slug = slugify(director)[:20] if director else ""
    if not director_slug:
        return [UNCATEGORIZED]
    tags = [f"dir-{director_slug}"]
    decade = decade_tag(year)
    if decade:
        tags.append(decade)
    return tags
