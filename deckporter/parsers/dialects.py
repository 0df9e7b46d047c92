"""
Dialect parsers for deck list exports.

One parser per exporter. Each takes raw text and returns a ParsedDeck:

    moxfield     Commander: <name> line, "Main:" style headers, set code columns
    edhrec       1x <name> *CMDR*
    tappedout    same layout as edhrec, with *F* / *E* treatment flags
    archidekt    Commander (1) headers, [Type] tags, ^colour^ tags
    mtggoldfish  Commander / Deck / Sideboard header lines
    mtga         "Name <commander> <theme>" header, then Deck section
    mtgo         flat list, commander is the final quantity-1 line
    generic      anything else; "// Commander" comments or a first-line guess

Parsers never raise on a single malformed line: lines that do not fit the
dialect are skipped.
"""

import logging
import re
from collections.abc import Callable

from deckporter.config import DECK_THEME_WORDS
from deckporter.models.deck import CardEntry, DeckSection, FormatTag, ParsedDeck
from deckporter.parsers.canonical import (
    canonicalize,
    has_commander_marker,
    is_comment,
    non_blank_lines,
    parse_quantity_line,
)

logger = logging.getLogger(__name__)

DialectParser = Callable[[str], ParsedDeck]

# Header lines shared by several dialects: "Deck", "Main:", "Sideboard (15)"
_SECTION_HEADER = re.compile(
    r"^(commanders?|main|mainboard|deck|sideboard|maybe|maybeboard|considering|companion|about)"
    r"\s*:?\s*(?:\(\d+\))?$",
    re.IGNORECASE,
)
_HEADER_SECTIONS = {
    "commander": DeckSection.COMMANDER,
    "commanders": DeckSection.COMMANDER,
    "main": DeckSection.MAINBOARD,
    "mainboard": DeckSection.MAINBOARD,
    "deck": DeckSection.MAINBOARD,
    "sideboard": DeckSection.SIDEBOARD,
    "maybe": DeckSection.SIDEBOARD,
    "maybeboard": DeckSection.SIDEBOARD,
    "considering": DeckSection.SIDEBOARD,
    "companion": DeckSection.SIDEBOARD,
    "about": DeckSection.UNKNOWN,
}

_MOXFIELD_COMMANDER_LINE = re.compile(r"^Commander:\s*(.+)$", re.IGNORECASE)
_MTGA_NAME_LINE = re.compile(r"^Name\s+(.+)$")
_MTGO_COMMANDER_LINE = re.compile(r"^1\s+[A-Z]")

# Archidekt decorations
_ARCHIDEKT_MAYBEBOARD = re.compile(r"\[Maybeboard\b[^\]]*\]", re.IGNORECASE)
_ARCHIDEKT_TAGS = re.compile(r"\s*\[.*?\]")
_ARCHIDEKT_COLOUR_TAGS = re.compile(r"\s*\^.*?\^")
_ARCHIDEKT_FLAGS = re.compile(r"\s*\*[^*]*\*")
_ARCHIDEKT_SET_AND_NUMBER = re.compile(r"\s*\([^)]+\)\s*[A-Z0-9\-]+[a-z]*")
_ARCHIDEKT_TRAILING_SET = re.compile(r"\s+[A-Z]{2,4}-?\d+[a-z]*$")


def header_section(line: str) -> DeckSection | None:
    """Section named by a header line, or None if the line is not a header."""
    match = _SECTION_HEADER.match(line)
    if not match:
        return None
    return _HEADER_SECTIONS[match.group(1).lower()]


class DeckAccumulator:
    """
    Collects card lines for one parse.

    - Quantities for the same canonical name are summed
    - The first commander is kept out of the entry list
    - Further commanders stay in the list, flagged, as partner candidates
    """

    def __init__(self, fmt: FormatTag) -> None:
        self.format = fmt
        self.commander_name: str | None = None
        self.warnings: list[str] = []
        self._quantities: dict[str, int] = {}
        self._names: dict[str, str] = {}
        self._flagged: set[str] = set()

    def add(self, name: str, quantity: int, commander: bool = False) -> None:
        if not name or quantity < 1:
            return

        if commander:
            if self.commander_name is None:
                self.commander_name = name
                return
            if self.commander_name.casefold() == name.casefold():
                return

        key = name.casefold()
        if key not in self._quantities:
            self._names[key] = name
            self._quantities[key] = 0
        self._quantities[key] += quantity
        if commander:
            self._flagged.add(key)

    def prepend(self, name: str, quantity: int) -> None:
        """Put a card back at the front of the entry list."""
        key = name.casefold()
        existing = self._quantities.pop(key, 0)
        self._names.setdefault(key, name)
        self._quantities = {key: quantity + existing, **self._quantities}

    @property
    def has_entries(self) -> bool:
        return bool(self._quantities)

    def build(self) -> ParsedDeck:
        entries = [
            CardEntry(
                raw_name=self._names[key],
                quantity=qty,
                explicit_commander_marker=key in self._flagged,
            )
            for key, qty in self._quantities.items()
        ]
        return ParsedDeck(
            commander_name=self.commander_name,
            entries=entries,
            format=self.format,
            warnings=list(self.warnings),
        )


def parse_moxfield(text: str) -> ParsedDeck:
    """
    Parse a Moxfield export.

    Accepts both the "Commander: <name>" layout and the plain layout with
    set code columns and "Commander" / "Deck" / "Sideboard" headers.
    """
    deck = DeckAccumulator(FormatTag.MOXFIELD)
    section = DeckSection.MAINBOARD

    for line in non_blank_lines(text):
        commander_match = _MOXFIELD_COMMANDER_LINE.match(line)
        if commander_match:
            deck.add(canonicalize(commander_match.group(1)), 1, commander=True)
            continue

        new_section = header_section(line)
        if new_section is not None:
            section = new_section
            continue

        if section is DeckSection.SIDEBOARD:
            continue

        parsed = parse_quantity_line(line)
        if parsed is None:
            continue
        quantity, rest = parsed
        is_commander = section is DeckSection.COMMANDER or has_commander_marker(line)
        deck.add(canonicalize(rest), quantity, commander=is_commander)

    return deck.build()


def parse_edhrec(text: str, fmt: FormatTag = FormatTag.EDHREC) -> ParsedDeck:
    """Parse an EDHREC / TappedOut export where the commander line ends in *CMDR*."""
    deck = DeckAccumulator(fmt)

    for line in non_blank_lines(text):
        if is_comment(line):
            continue
        new_section = header_section(line)
        if new_section is not None:
            continue

        parsed = parse_quantity_line(line)
        if parsed is None:
            continue
        quantity, rest = parsed
        deck.add(canonicalize(rest), quantity, commander=has_commander_marker(line))

    return deck.build()


def parse_tappedout(text: str) -> ParsedDeck:
    return parse_edhrec(text, FormatTag.TAPPEDOUT)


def _clean_archidekt_name(rest: str) -> str:
    name = _ARCHIDEKT_TAGS.sub("", rest)
    name = _ARCHIDEKT_COLOUR_TAGS.sub("", name)
    name = _ARCHIDEKT_FLAGS.sub("", name)
    name = _ARCHIDEKT_SET_AND_NUMBER.sub("", name)
    name = canonicalize(name)
    return _ARCHIDEKT_TRAILING_SET.sub("", name).strip()


def parse_archidekt(text: str) -> ParsedDeck:
    """
    Parse an Archidekt export.

    Lines look like:
        1x Shorikai, Genesis Engine (nec) 8 [Commander{top}]
        1x Sol Ring (cmm) 400 [Artifact] ^Have,#37d67a^
    """
    deck = DeckAccumulator(FormatTag.ARCHIDEKT)
    section = DeckSection.UNKNOWN

    for line in non_blank_lines(text):
        new_section = header_section(line)
        if new_section is not None:
            section = new_section
            continue

        if section is DeckSection.SIDEBOARD or _ARCHIDEKT_MAYBEBOARD.search(line):
            continue

        parsed = parse_quantity_line(line)
        if parsed is None:
            continue
        quantity, rest = parsed
        is_commander = section is DeckSection.COMMANDER or has_commander_marker(line)
        deck.add(_clean_archidekt_name(rest), quantity, commander=is_commander)

    return deck.build()


def parse_mtggoldfish(text: str) -> ParsedDeck:
    """Parse an MTGGoldfish export with Commander / Deck / Sideboard headers."""
    deck = DeckAccumulator(FormatTag.MTGGOLDFISH)
    section = DeckSection.MAINBOARD

    for line in non_blank_lines(text):
        new_section = header_section(line)
        if new_section is not None:
            section = new_section
            continue

        if section is DeckSection.SIDEBOARD:
            continue

        parsed = parse_quantity_line(line)
        if parsed is None:
            continue
        quantity, rest = parsed
        deck.add(canonicalize(rest), quantity, commander=section is DeckSection.COMMANDER)

    return deck.build()


def split_mtga_header(header: str) -> str:
    """
    Pull the commander name out of an MTGA "Name" header.

    "Shorikai, Genesis Engine Mech Army" -> "Shorikai, Genesis Engine"

    Stops at the first deck-theme word once at least two words including a
    comma are collected. Without a theme word, comma names keep two words
    after the comma and other names keep their first three words.
    """
    words = header.split()
    commander_words: list[str] = []

    for word in words:
        if (
            word.lower() in DECK_THEME_WORDS
            and len(commander_words) >= 2
            and "," in " ".join(commander_words)
        ):
            break
        commander_words.append(word)

    if len(commander_words) < len(words):
        return " ".join(commander_words)

    if "," in header:
        before, after = header.split(",", 1)
        return f"{before.strip()}, {' '.join(after.split()[:2])}".strip()

    return " ".join(words[:3])


def parse_mtga(text: str) -> ParsedDeck:
    """
    Parse an MTG Arena export.

        About
        Name Shorikai, Genesis Engine Mech Army

        Deck
        1 Sol Ring (CMM) 400
    """
    deck = DeckAccumulator(FormatTag.MTGA)
    section = DeckSection.UNKNOWN
    header_guess: str | None = None

    for line in non_blank_lines(text):
        name_match = _MTGA_NAME_LINE.match(line)
        if name_match:
            header_guess = canonicalize(split_mtga_header(name_match.group(1).strip()))
            continue

        new_section = header_section(line)
        if new_section is not None:
            section = new_section
            continue

        if section is DeckSection.SIDEBOARD:
            continue

        parsed = parse_quantity_line(line)
        if parsed is None:
            continue
        quantity, rest = parsed
        deck.add(canonicalize(rest), quantity, commander=section is DeckSection.COMMANDER)

    if header_guess:
        if deck.commander_name is None:
            deck.commander_name = header_guess
        elif deck.commander_name.casefold() != header_guess.casefold():
            deck.warnings.append(
                f"Deck name suggests commander '{header_guess}' but the Commander "
                f"section lists '{deck.commander_name}'; using '{deck.commander_name}'"
            )

    return deck.build()


def parse_mtgo(text: str) -> ParsedDeck:
    """
    Parse an MTGO export: a flat list whose final line is the commander.

    The commander is only taken when the final non-blank line has quantity 1.
    """
    deck = DeckAccumulator(FormatTag.MTGO)
    lines = non_blank_lines(text)
    commander_index = -1
    if lines and _MTGO_COMMANDER_LINE.match(lines[-1]):
        commander_index = len(lines) - 1

    for index, line in enumerate(lines):
        parsed = parse_quantity_line(line)
        if parsed is None:
            continue
        quantity, rest = parsed
        deck.add(canonicalize(rest), quantity, commander=index == commander_index)

    return deck.build()


def parse_generic(text: str, first_card_heuristic: bool = True) -> ParsedDeck:
    """
    Parse a marker-less list.

    Sections come from keywords in comment lines ("// Commander",
    "# Main Deck"). Every line of a commander section is marked; lines
    after the first become partner candidates. Without one, the first
    quantity-1 line is guessed to be the commander. An explicit marker or
    commander section later in the list overrides the guess and the
    disagreement is recorded as a warning.
    """
    deck = DeckAccumulator(FormatTag.GENERIC)
    section = DeckSection.MAINBOARD
    guessed = False

    for line in non_blank_lines(text):
        if is_comment(line):
            lower = line.lower()
            if "commander" in lower:
                section = DeckSection.COMMANDER
            elif "sideboard" in lower or "maybe" in lower:
                section = DeckSection.SIDEBOARD
            elif "main" in lower or "deck" in lower:
                section = DeckSection.MAINBOARD
            continue

        if section is DeckSection.SIDEBOARD:
            continue

        parsed = parse_quantity_line(line)
        if parsed is None:
            continue
        quantity, rest = parsed
        name = canonicalize(rest)
        if not name:
            continue

        # Lines under a commander comment count as marked
        if has_commander_marker(line) or section is DeckSection.COMMANDER:
            if guessed and deck.commander_name is not None:
                guess = deck.commander_name
                deck.warnings.append(
                    f"First-line commander guess '{guess}' conflicts with explicit "
                    f"commander marker on '{name}'; using '{name}'"
                )
                logger.info("Commander guess %s overridden by marker on %s", guess, name)
                deck.commander_name = None
                deck.prepend(guess, 1)
                guessed = False
            deck.add(name, quantity, commander=True)
        elif (
            first_card_heuristic
            and quantity == 1
            and deck.commander_name is None
            and not deck.has_entries
        ):
            deck.add(name, quantity, commander=True)
            guessed = True
        else:
            deck.add(name, quantity)

    return deck.build()


PARSERS: dict[FormatTag, DialectParser] = {
    FormatTag.MOXFIELD: parse_moxfield,
    FormatTag.EDHREC: parse_edhrec,
    FormatTag.TAPPEDOUT: parse_tappedout,
    FormatTag.ARCHIDEKT: parse_archidekt,
    FormatTag.MTGGOLDFISH: parse_mtggoldfish,
    FormatTag.MTGA: parse_mtga,
    FormatTag.MTGO: parse_mtgo,
    FormatTag.GENERIC: parse_generic,
}


def parse_by_format(text: str, fmt: FormatTag) -> ParsedDeck:
    """Parse text with the parser for a given dialect (generic if unknown)."""
    parser = PARSERS.get(fmt, parse_generic)
    return parser(text)
