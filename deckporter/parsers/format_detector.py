"""
Deck export format detection.

Exporters do not publish a grammar, so detection relies on fingerprints:
structural signatures that are necessary but not sufficient for a dialect.
Fingerprints are checked in a fixed priority order, most specific first,
and the first match wins. Anything unrecognised is "generic".
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import NamedTuple

from deckporter.config import settings
from deckporter.models.deck import FormatTag, ParsedDeck
from deckporter.parsers.dialects import (
    DialectParser,
    parse_archidekt,
    parse_edhrec,
    parse_generic,
    parse_moxfield,
    parse_mtga,
    parse_mtggoldfish,
    parse_mtgo,
    parse_tappedout,
)

logger = logging.getLogger(__name__)

# A flat MTGO list needs at least this many card lines to be told apart
# from a short generic list
MTGO_MIN_LINES = 50

_MTGA_HEADER = re.compile(r"^Name[ \t]+\S.*[ \t]+\S+$", re.MULTILINE)
_MOXFIELD_COMMANDER = re.compile(r"^Commander:[ \t]*\S.*$", re.MULTILINE | re.IGNORECASE)
# "(C21) 263" - set code column followed by a collector number, on one line
_SET_CODE_COLUMN = re.compile(r"\(\w{2,5}\)[ \t]+\d+")
_QUANTITY_CAPITAL = re.compile(r"^\d+\s+[A-Z]")
_QUANTITY_LETTER = re.compile(r"^\d+\s+[A-Za-z]")
_QUANTITY_ONE = re.compile(r"^1\s+[A-Z]")
_CMDR_TOKEN = "*CMDR*"
_TAPPEDOUT_FLAGS = re.compile(r"\*(?:F|E)\*")
_ARCHIDEKT_COMMANDER_TAG = re.compile(r"\[Commander\{top\}\]", re.IGNORECASE)
_SET_CODE_PAREN = re.compile(r"\(\w{3,4}\)")
_ARCHIDEKT_COMMANDER_HEADER = re.compile(r"^Commander[ \t]*\(\d+\)$", re.MULTILINE | re.IGNORECASE)
_DECK_HEADER = re.compile(r"^Deck$", re.MULTILINE | re.IGNORECASE)
_SIDEBOARD_OR_COMMANDER_HEADER = re.compile(r"^(?:Sideboard|Commander)$", re.MULTILINE | re.IGNORECASE)


@dataclass
class DeckText:
    """Raw deck text prepared once for all fingerprint checks."""

    text: str
    raw_lines: list[str] = field(init=False)
    lines: list[str] = field(init=False)

    def __post_init__(self) -> None:
        self.text = self.text.strip()
        self.raw_lines = [line.strip() for line in self.text.splitlines()]
        self.lines = [line for line in self.raw_lines if line]

    @property
    def has_set_codes(self) -> bool:
        return any(_SET_CODE_COLUMN.search(line) for line in self.lines)


class Dialect(NamedTuple):
    """A fingerprint predicate paired with the parser it selects."""

    tag: FormatTag
    matches: Callable[[DeckText], bool]
    parse: DialectParser


def looks_like_mtga(deck: DeckText) -> bool:
    """A "Name <commander> <theme>" header line."""
    return bool(_MTGA_HEADER.search(deck.text))


def looks_like_moxfield(deck: DeckText) -> bool:
    """A literal "Commander: <name>" line."""
    return bool(_MOXFIELD_COMMANDER.search(deck.text))


def looks_like_moxfield_plain(deck: DeckText) -> bool:
    """
    Set code columns on quantity lines, without bracket tags or *CMDR*.

    Archidekt shares the set code column but adds [Type] tags; EDHREC and
    TappedOut share the line shape but mark the commander with *CMDR*.
    """
    return (
        deck.has_set_codes
        and any(_QUANTITY_CAPITAL.match(line) for line in deck.lines)
        and "[" not in deck.text
        and _CMDR_TOKEN not in deck.text
    )


def looks_like_mtgo(deck: DeckText) -> bool:
    """
    A long flat list with no markers at all, whose final quantity-1 line
    is separated from the rest by a blank line.
    """
    if len(deck.lines) <= MTGO_MIN_LINES or deck.has_set_codes:
        return False
    if _CMDR_TOKEN in deck.text or "[" in deck.text:
        return False
    if not all(_QUANTITY_LETTER.match(line) for line in deck.lines):
        return False

    last_line = deck.lines[-1]
    if not _QUANTITY_ONE.match(last_line):
        return False

    last_index = len(deck.raw_lines) - 1
    return last_index > 0 and deck.raw_lines[last_index - 1] == ""


def looks_like_tappedout(deck: DeckText) -> bool:
    """*CMDR* marker plus TappedOut's *F* / *E* treatment flags."""
    return _CMDR_TOKEN in deck.text and bool(_TAPPEDOUT_FLAGS.search(deck.text))


def looks_like_edhrec(deck: DeckText) -> bool:
    """A trailing *CMDR* marker."""
    return _CMDR_TOKEN in deck.text


def looks_like_archidekt(deck: DeckText) -> bool:
    """Bracketed type tags next to set codes, or "Commander (1)" headers."""
    if _ARCHIDEKT_COMMANDER_TAG.search(deck.text):
        return True
    if "[" in deck.text and "(" in deck.text and _SET_CODE_PAREN.search(deck.text):
        return True
    return bool(_ARCHIDEKT_COMMANDER_HEADER.search(deck.text))


def looks_like_mtggoldfish(deck: DeckText) -> bool:
    """A bare "Deck" header plus a bare "Sideboard" or "Commander" header."""
    return bool(_DECK_HEADER.search(deck.text)) and bool(
        _SIDEBOARD_OR_COMMANDER_HEADER.search(deck.text)
    )


def _parse_generic(text: str) -> ParsedDeck:
    return parse_generic(text, first_card_heuristic=settings.first_card_heuristic)


# Priority order: first match wins
DIALECTS: tuple[Dialect, ...] = (
    Dialect(FormatTag.MTGA, looks_like_mtga, parse_mtga),
    Dialect(FormatTag.MOXFIELD, looks_like_moxfield, parse_moxfield),
    Dialect(FormatTag.MOXFIELD, looks_like_moxfield_plain, parse_moxfield),
    Dialect(FormatTag.MTGO, looks_like_mtgo, parse_mtgo),
    Dialect(FormatTag.TAPPEDOUT, looks_like_tappedout, parse_tappedout),
    Dialect(FormatTag.EDHREC, looks_like_edhrec, parse_edhrec),
    Dialect(FormatTag.ARCHIDEKT, looks_like_archidekt, parse_archidekt),
    Dialect(FormatTag.MTGGOLDFISH, looks_like_mtggoldfish, parse_mtggoldfish),
)

GENERIC_DIALECT = Dialect(FormatTag.GENERIC, lambda _deck: True, _parse_generic)


def select_dialect(text: str) -> Dialect:
    """Return the first dialect whose fingerprint matches, else generic."""
    deck = DeckText(text)
    for dialect in DIALECTS:
        if dialect.matches(deck):
            return dialect
    return GENERIC_DIALECT


def detect_format(text: str) -> FormatTag:
    """
    Classify raw deck text into a dialect tag.

    Always succeeds; ambiguous or marker-less text is "generic".
    """
    tag = select_dialect(text).tag
    logger.debug("Detected deck format: %s", tag.value)
    return tag
