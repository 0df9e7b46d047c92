"""
Commander detection.

Fallback used when the deck text did not name a commander. Works on
resolved card records in ORIGINAL input order; resolution completion
order would break the first-card heuristic.

Cascade (first rule that produces an answer wins):
    a. dialect-level commander flags (one card, or two partner-capable cards)
    b. first-card heuristic
    c. legendary creature / vehicle scan with tie-break priorities
    d. nothing found -> None
"""

import logging
from collections.abc import Collection, Sequence
from dataclasses import dataclass, field

from deckporter.config import settings
from deckporter.models.card import CardRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommanderPick:
    """Detected command zone: one commander plus optional partners."""

    commander: CardRecord
    partners: tuple[CardRecord, ...] = field(default_factory=tuple)

    def cards(self) -> list[CardRecord]:
        return [self.commander, *self.partners]


def can_lead_deck(card: CardRecord) -> bool:
    """
    True if a card is allowed in the command zone by type.

    Legendary creatures, planeswalkers whose text grants eligibility, and
    legendary artifact vehicles.
    """
    if card.is_legendary and card.is_creature:
        return True
    if card.is_planeswalker and card.grants_commander_eligibility:
        return True
    return card.is_legendary and card.is_vehicle


def _partner_pair(cards: Sequence[CardRecord], allow_partners: bool) -> CommanderPick | None:
    if allow_partners and len(cards) == 2 and all(c.has_partner_ability for c in cards):
        return CommanderPick(cards[0], (cards[1],))
    return None


def detect_commander(
    records: Sequence[CardRecord],
    flagged_ids: Collection[str] = (),
    allow_partners: bool | None = None,
    first_card_heuristic: bool | None = None,
) -> CommanderPick | None:
    """
    Guess the commander of a deck from its resolved cards.

    Args:
        records: Resolved cards in original input order
        flagged_ids: IDs of cards the dialect marked as commander
        allow_partners: Accept two partner-capable cards as co-commanders
        first_card_heuristic: Take a commander-legal first card immediately

    Returns:
        CommanderPick, or None if no card qualifies
    """
    if allow_partners is None:
        allow_partners = settings.allow_partners
    if first_card_heuristic is None:
        first_card_heuristic = settings.first_card_heuristic

    if not records:
        return None

    # a. Dialect-level flags
    flagged = [card for card in records if card.id in flagged_ids]
    if len(flagged) == 1:
        logger.debug("Commander from explicit flag: %s", flagged[0].name)
        return CommanderPick(flagged[0])
    pair = _partner_pair(flagged, allow_partners)
    if pair:
        logger.debug("Partner commanders from explicit flags: %s", [c.name for c in pair.cards()])
        return pair

    # b. First card in the list
    if first_card_heuristic and can_lead_deck(records[0]):
        logger.debug("Commander from first-card heuristic: %s", records[0].name)
        return CommanderPick(records[0])

    # c. Legendary creatures and vehicles anywhere in the list
    legends = [card for card in records if card.is_legendary and (card.is_creature or card.is_vehicle)]
    if not legends:
        return None
    if len(legends) == 1:
        return CommanderPick(legends[0])

    pair = _partner_pair(legends, allow_partners)
    if pair:
        return pair

    artifact_legends = [card for card in legends if card.is_artifact]
    if len(artifact_legends) == 1:
        return CommanderPick(artifact_legends[0])

    multicolored = [card for card in legends if len(card.color_identity) >= 2]
    if len(multicolored) == 1:
        return CommanderPick(multicolored[0])

    return CommanderPick(legends[0])
