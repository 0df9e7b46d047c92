"""
Parsed deck models.

These are UNTRUSTED shapes produced by the dialect parsers. Card names are
canonical (annotations stripped) but not yet resolved against the card
database.
"""

from dataclasses import dataclass, field
from enum import Enum


class FormatTag(str, Enum):
    """Deck export dialects recognised by the format detector."""

    MOXFIELD = "moxfield"
    EDHREC = "edhrec"
    ARCHIDEKT = "archidekt"
    TAPPEDOUT = "tappedout"
    MTGGOLDFISH = "mtggoldfish"
    MTGA = "mtga"
    MTGO = "mtgo"
    GENERIC = "generic"


class DeckSection(str, Enum):
    """Section a parser is currently reading."""

    COMMANDER = "commander"
    MAINBOARD = "mainboard"
    SIDEBOARD = "sideboard"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class CardEntry:
    """
    One card line of a parsed deck.

    Attributes:
        raw_name: Canonical card name as written in the export
        quantity: Number of copies (always >= 1)
        explicit_commander_marker: True if the line carried a commander marker
    """

    raw_name: str
    quantity: int
    explicit_commander_marker: bool = False

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"Quantity for '{self.raw_name}' must be at least 1")


@dataclass
class ParsedDeck:
    """
    Result of running one dialect parser over raw text.

    Attributes:
        commander_name: Commander named by the dialect, if any
        entries: Non-commander card lines in input order
        format: Dialect that produced this deck
        warnings: Parser-level notes surfaced to validation
    """

    commander_name: str | None
    entries: list[CardEntry]
    format: FormatTag
    warnings: list[str] = field(default_factory=list)

    def total_cards(self) -> int:
        """Total copies across all entries (commander excluded)."""
        return sum(entry.quantity for entry in self.entries)
