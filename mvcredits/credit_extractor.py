"""Rule-based extraction of director, production and label credits.

Each credit field has an ordered ladder of ``ExtractionRule`` objects. Rules
are tried top to bottom and every match of a rule is cleaned and checked
before the next rule is consulted, so a rejected candidate (a "Director's
Rep" line, a production coordinator) never blocks a valid one further down.

Ladders:

    director    directed-by > director-label > written-and-directed > video-by
    production  production-company > produced-by > producer-label > executive-producer
    label       record-label > released-by
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Pattern, Sequence

from .config import ExtractionConfig
from .records import CreditRecord
from .validator import validate

logger = logging.getLogger(__name__)

# Separator allowed between a credit label and its value. The value may
# start on the line after the label, but never after a blank line.
_SEP = r"[ \t]*[:.\-–—]?[ \t]*(?:\n[ \t]*)?"
_VALUE = r"(?P<value>[^\n]+?)[ \t]*$"

_FLAGS = re.IGNORECASE | re.MULTILINE


@dataclass(frozen=True)
class ExtractionRule:
    """One labelled pattern in a credit ladder."""

    tier: str
    pattern: Pattern[str]

    def candidates(self, text: str) -> Iterator["Candidate"]:
        for match in self.pattern.finditer(text):
            value = match.group("value")
            if value:
                yield Candidate(self.tier, value, _line_of(text, match.start(), match.end()))


@dataclass(frozen=True)
class Candidate:
    tier: str
    value: str
    line: str


def _line_of(text: str, start: int, end: int) -> str:
    """Full line(s) of ``text`` spanned by a match."""
    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", end)
    return text[line_start : len(text) if line_end == -1 else line_end]


DIRECTOR_RULES: List[ExtractionRule] = [
    ExtractionRule(
        "directed-by",
        re.compile(
            r"^[ \t]*(?:Directed\s+by" + _SEP + r"|Dir[ \t]*[:.\-–—][ \t]*)" + _VALUE,
            _FLAGS,
        ),
    ),
    ExtractionRule(
        "director-label",
        re.compile(
            r"^[ \t]*"
            r"(?<!Art\s)(?<!Creative\s)(?<!Assistant\s)(?<!Casting\s)"
            r"(?<!Executive\s)(?<!Technical\s)(?<!Music\s)"
            r"Directors?\b"
            r"(?!\s+of\s+Photography)"
            r"(?!['’]s\s+(?:Assistant|Rep)\b)"
            # any other possessive ("Director's Cut") is not a label either
            r"(?!['’]s\b)" + _SEP + _VALUE,
            _FLAGS,
        ),
    ),
    ExtractionRule(
        "written-and-directed",
        re.compile(r"^[ \t]*Written\s*(?:and|&)\s*Directed\s*by" + _SEP + _VALUE, _FLAGS),
    ),
    ExtractionRule(
        "video-by",
        re.compile(r"^[ \t]*(?:Video|Film)\s+by[ \t]+" + _VALUE, _FLAGS),
    ),
]

PRODUCTION_RULES: List[ExtractionRule] = [
    ExtractionRule(
        "production-company",
        re.compile(
            r"^[ \t]*(?:Production\s+(?:Company|Co|House)|Prod\.?\s+Co)\b\.?" + _SEP + _VALUE,
            _FLAGS,
        ),
    ),
    ExtractionRule(
        "produced-by",
        re.compile(
            r"^[ \t]*Produced\s+by[ \t]+(?P<value>[A-Z][^\n]*?)(?:[ \t]*$|,|[ \t]+for[ \t]+)",
            _FLAGS,
        ),
    ),
    ExtractionRule(
        "producer-label",
        re.compile(r"^[ \t]*Producers?\b(?!['’])" + _SEP + _VALUE, _FLAGS),
    ),
    ExtractionRule(
        "executive-producer",
        re.compile(r"^[ \t]*Executive\s+Producers?\b" + _SEP + _VALUE, _FLAGS),
    ),
]

LABEL_RULES: List[ExtractionRule] = [
    ExtractionRule(
        "record-label",
        re.compile(r"(?<![/.@])\b(?:Record\s+Label|Label)\b(?!['’])" + _SEP + _VALUE, _FLAGS),
    ),
    ExtractionRule(
        "released-by",
        re.compile(
            r"\b(?:Released\s+(?:by|on)|Distributed\s+by)\b" + _SEP + _VALUE,
            _FLAGS,
        ),
    ),
]

# A production candidate whose line mentions one of these roles is a
# neighbouring crew credit, never the production entity.
PRODUCTION_DISCARD_PATTERNS: Sequence[Pattern[str]] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bCoordinator\b",
        r"\bCo-ordinator\b",
        r"\bManager\b",
        r"\bSupervisor\b",
        r"\bAssistant\b",
        r"\bLine\s+Producer\b",
        r"\bAssociate\b",
    )
)

LEADING_PUNCTUATION = re.compile(r"^[-–—:.\s]+")
LEADING_CONNECTOR = re.compile(r"^(?:by|and|with|&)\s+", re.IGNORECASE)
LEADING_LABEL_CONNECTOR = re.compile(r"^(?:by|and|with|&|on)\s+", re.IGNORECASE)
URL_PATTERN = re.compile(r"\s*https?://[^\s)]+")
HANDLE_PATTERN = re.compile(r"\s*@[\w.]+")
LEAKED_ROLE_PREFIX = re.compile(
    r"^(?:Editor|Producer|DOP|Cinematographer)\s*[:.\-]?\s*", re.IGNORECASE
)
PARENTHETICAL = re.compile(r"\s*\([^)]*\)\s*")
ROLE_CONTINUATION = re.compile(r"\s+and\s+(?:Producer|Editor|DOP|Cinematographer):", re.IGNORECASE)
TRAILING_PUNCTUATION = re.compile(r"[,.\-–—:]+$")
MULTIPLE_SPACES = re.compile(r"[ \t]{2,}")


def clean_credit(raw: str, connector: Pattern[str] = LEADING_CONNECTOR) -> str:
    """Apply the shared cleanup steps to a captured credit value."""
    text = raw.strip()
    text = LEADING_PUNCTUATION.sub("", text)
    text = connector.sub("", text)
    text = URL_PATTERN.sub("", text)
    text = HANDLE_PATTERN.sub("", text)
    text = LEAKED_ROLE_PREFIX.sub("", text)
    text = PARENTHETICAL.sub(" ", text)
    text = text.split("\n")[0]
    text = ROLE_CONTINUATION.split(text)[0].strip()
    text = TRAILING_PUNCTUATION.sub("", text).strip()
    return MULTIPLE_SPACES.sub(" ", text)


def is_discarded_production_line(line: str) -> bool:
    return any(pattern.search(line) for pattern in PRODUCTION_DISCARD_PATTERNS)


class CreditExtractor:
    """Extract a CreditRecord from a raw video description."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()

    def extract(self, description: Optional[str]) -> CreditRecord:
        """Extract all three credit fields independently.

        An empty or missing description yields an empty CreditRecord.
        """
        if not description or not description.strip():
            return CreditRecord()

        text = description.replace("\r\n", "\n").replace("\r", "\n")
        return CreditRecord(
            director=self.extract_director(text),
            production=self.extract_production(text),
            label=self.extract_label(text),
        )

    def extract_director(self, text: str) -> Optional[str]:
        return self._first_accepted("director", DIRECTOR_RULES, text, self._accept_director)

    def extract_production(self, text: str) -> Optional[str]:
        return self._first_accepted("production", PRODUCTION_RULES, text, self._accept_production)

    def extract_label(self, text: str) -> Optional[str]:
        return self._first_accepted("label", LABEL_RULES, text, self._accept_label)

    def _first_accepted(
        self,
        field_name: str,
        rules: Sequence[ExtractionRule],
        text: str,
        accept: Callable[[Candidate], Optional[str]],
    ) -> Optional[str]:
        for rule in rules:
            for candidate in rule.candidates(text):
                value = accept(candidate)
                if value:
                    logger.debug(f"{field_name}: '{value}' via {rule.tier}")
                    return value
                logger.debug(f"{field_name}: rejected '{candidate.value}' from {rule.tier}")
        return None

    def _accept_director(self, candidate: Candidate) -> Optional[str]:
        return validate(
            clean_credit(candidate.value),
            role="director",
            min_length=self.config.min_length,
            max_length=self.config.director_max_length,
        )

    def _accept_production(self, candidate: Candidate) -> Optional[str]:
        if is_discarded_production_line(candidate.line):
            return None
        return self._within_bounds(clean_credit(candidate.value))

    def _accept_label(self, candidate: Candidate) -> Optional[str]:
        return self._within_bounds(clean_credit(candidate.value, LEADING_LABEL_CONNECTOR))

    def _within_bounds(self, value: str) -> Optional[str]:
        if self.config.min_length <= len(value) <= self.config.entity_max_length:
            return value
        return None
