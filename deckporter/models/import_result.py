"""
Resolution and import result models.

INVARIANTS:
- Every CardEntry maps to exactly one ResolvedCard or UnresolvedCard
- The commander (and partners) never also appear in main_deck
- Quantities are always >= 1
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from deckporter.models.card import CardRecord
from deckporter.models.deck import FormatTag


@dataclass(frozen=True, slots=True)
class Resolution:
    """
    Outcome of resolving one raw card name.

    Exactly one of record / error is set.
    """

    record: CardRecord | None
    error: str | None = None
    suggestion: str | None = None

    @property
    def resolved(self) -> bool:
        return self.record is not None

    @classmethod
    def hit(cls, record: CardRecord, suggestion: str | None = None) -> "Resolution":
        return cls(record=record, suggestion=suggestion)

    @classmethod
    def miss(cls, error: str, suggestion: str | None = None) -> "Resolution":
        return cls(record=None, error=error, suggestion=suggestion)


@dataclass(frozen=True, slots=True)
class ResolvedCard:
    """A resolved card with the quantity requested by the deck list."""

    card: CardRecord
    quantity: int


@dataclass(frozen=True, slots=True)
class UnresolvedCard:
    """A deck line that could not be matched to any card."""

    raw_name: str
    reason: str
    suggestion: str | None = None


@dataclass(frozen=True, slots=True)
class ImportStats:
    """Counts reported alongside an import."""

    total_requested: int
    resolved: int
    unresolved: int


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Structured, non-throwing validation outcome."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass
class ImportResult:
    """
    Final result of one deck import. Owned by the caller.

    Attributes:
        commander: Resolved commander, explicit or detected
        partners: Additional commanders (partner / background pairs)
        main_deck: Resolved non-commander cards in input order
        unresolved: Lines that failed resolution
        suggestions: Human-readable correction notes from fuzzy matching
        format: Dialect the input was parsed as
        stats: Request / resolution counts
        warnings: Parser-level notes (e.g. commander heuristic conflicts)
        name: Deck name found in a comment line, if any
        validation: Filled in by the importer after validation
    """

    commander: CardRecord | None
    main_deck: list[ResolvedCard]
    unresolved: list[UnresolvedCard]
    suggestions: list[str]
    format: FormatTag
    stats: ImportStats
    partners: list[CardRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    name: str | None = None
    validation: ValidationReport | None = None

    def commanders(self) -> list[CardRecord]:
        """Commander followed by partners."""
        if self.commander is None:
            return list(self.partners)
        return [self.commander, *self.partners]

    def total_cards(self) -> int:
        """Main deck copies plus every card in the command zone."""
        return sum(rc.quantity for rc in self.main_deck) + len(self.commanders())

    def to_deck_payload(self) -> dict[str, Any]:
        """
        Shape the result for the deck-persistence layer.

        Returns:
            {"commander", "cards", "card_categories"} where cards maps card
            name -> quantity and card_categories maps category -> count.
        """
        cards: dict[str, int] = {}
        categories: Counter[str] = Counter()

        for rc in self.main_deck:
            cards[rc.card.name] = cards.get(rc.card.name, 0) + rc.quantity
            categories[rc.card.primary_type] += rc.quantity

        return {
            "commander": self.commander.to_payload() if self.commander else None,
            "partners": [p.to_payload() for p in self.partners],
            "cards": cards,
            "card_categories": dict(categories),
        }
