"""
Card record model.

CardRecord is the authoritative card data owned by the external card
database. Records are cached for the process lifetime and never mutated.
"""

from dataclasses import dataclass, field
from typing import Any

from deckporter.config import PARTNER_KEYWORDS

# Order matters - check by priority order (first match wins)
PRIMARY_TYPE_ORDER = (
    "Creature",
    "Planeswalker",
    "Battle",
    "Instant",
    "Sorcery",
    "Enchantment",
    "Artifact",
    "Land",
)


@dataclass(frozen=True, slots=True)
class CardRecord:
    """
    Oracle data for one card as returned by the card database.

    Attributes:
        id: Scryfall card ID
        name: Authoritative card name (full name for multi-face cards)
        type_line: Full type line (e.g., "Legendary Creature - Human Warrior")
        oracle_text: Rules text; faces are joined with a newline
        color_identity: Color letters (W, U, B, R, G)
        image_uris: Image size -> URL
    """

    id: str
    name: str
    type_line: str = ""
    oracle_text: str = ""
    color_identity: frozenset[str] = frozenset()
    image_uris: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_scryfall(cls, data: dict[str, Any]) -> "CardRecord":
        """Build a record from a Scryfall card object."""
        faces: list[dict[str, Any]] = data.get("card_faces") or []

        oracle_text = data.get("oracle_text")
        if oracle_text is None:
            oracle_text = "\n".join(f.get("oracle_text", "") for f in faces if f.get("oracle_text"))

        type_line = data.get("type_line")
        if type_line is None:
            type_line = " // ".join(f.get("type_line", "") for f in faces)

        image_uris = data.get("image_uris")
        if image_uris is None and faces:
            image_uris = faces[0].get("image_uris")

        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            type_line=str(type_line or ""),
            oracle_text=str(oracle_text or ""),
            color_identity=frozenset(data.get("color_identity") or ()),
            image_uris=dict(image_uris or {}),
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to a Scryfall-shaped dict (inverse of from_scryfall)."""
        return {
            "id": self.id,
            "name": self.name,
            "type_line": self.type_line,
            "oracle_text": self.oracle_text,
            "color_identity": sorted(self.color_identity),
            "image_uris": dict(self.image_uris),
        }

    @property
    def is_legendary(self) -> bool:
        return "legendary" in self.type_line.lower()

    @property
    def is_creature(self) -> bool:
        return "creature" in self.type_line.lower()

    @property
    def is_artifact(self) -> bool:
        return "artifact" in self.type_line.lower()

    @property
    def is_vehicle(self) -> bool:
        """True for artifact vehicles (Shorikai and friends)."""
        type_line = self.type_line.lower()
        return "artifact" in type_line and "vehicle" in type_line

    @property
    def is_planeswalker(self) -> bool:
        return "planeswalker" in self.type_line.lower()

    @property
    def grants_commander_eligibility(self) -> bool:
        """True if the rules text says the card can be your commander."""
        return "can be your commander" in self.oracle_text.lower()

    @property
    def has_partner_ability(self) -> bool:
        """True if the card can share the command zone with another commander."""
        text = self.oracle_text.lower()
        return any(keyword in text for keyword in PARTNER_KEYWORDS)

    @property
    def primary_type(self) -> str:
        """Primary card type used for deck categories."""
        if not self.type_line:
            return "Unknown"

        # Multi-face cards: take the front face
        front = self.type_line.split("//")[0]
        for card_type in PRIMARY_TYPE_ORDER:
            if card_type in front:
                return card_type
        return "Other"
