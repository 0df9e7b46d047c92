import pytest

from deckporter.models.card import CardRecord
from deckporter.models.deck import CardEntry, FormatTag, ParsedDeck
from deckporter.models.failure import FailureKind, ImportFailure, OutcomeType
from deckporter.models.import_result import (
    ImportResult,
    ImportStats,
    Resolution,
    ResolvedCard,
)
from deckporter.models.progress import ImportStage, ProgressEvent


class TestCardRecord:
    def test_from_scryfall(self) -> None:
        record = CardRecord.from_scryfall(
            {
                "id": "abc",
                "name": "Sol Ring",
                "type_line": "Artifact",
                "oracle_text": "{T}: Add {C}{C}.",
                "color_identity": [],
                "image_uris": {"normal": "https://img/sol.jpg"},
            }
        )
        assert record.id == "abc"
        assert record.color_identity == frozenset()
        assert record.image_uris["normal"] == "https://img/sol.jpg"

    def test_from_scryfall_card_faces(self) -> None:
        """Multi-face cards join face text and use the front image."""
        record = CardRecord.from_scryfall(
            {
                "id": "esika",
                "name": "Esika, God of the Tree // The Prismatic Bridge",
                "color_identity": ["G"],
                "card_faces": [
                    {
                        "type_line": "Legendary Creature — God",
                        "oracle_text": "Vigilance",
                        "image_uris": {"normal": "front.jpg"},
                    },
                    {
                        "type_line": "Legendary Enchantment",
                        "oracle_text": "At the beginning of your upkeep, reveal cards.",
                    },
                ],
            }
        )
        assert record.type_line == "Legendary Creature — God // Legendary Enchantment"
        assert record.oracle_text.startswith("Vigilance\n")
        assert record.image_uris == {"normal": "front.jpg"}
        assert record.primary_type == "Creature"

    def test_record_immutable(self) -> None:
        record = CardRecord(id="x", name="Sol Ring")
        with pytest.raises(AttributeError):
            record.name = "Mana Crypt"  # type: ignore[misc]

    def test_image_uris_ignored_for_equality(self) -> None:
        a = CardRecord(id="x", name="Sol Ring", image_uris={"normal": "a.jpg"})
        b = CardRecord(id="x", name="Sol Ring")
        assert a == b

    def test_type_properties(self, card_pool: dict[str, CardRecord]) -> None:
        shorikai = card_pool["Shorikai, Genesis Engine"]
        assert shorikai.is_legendary
        assert shorikai.is_vehicle
        assert not shorikai.is_creature

        tymna = card_pool["Tymna the Weaver"]
        assert tymna.is_creature
        assert tymna.has_partner_ability

    def test_commander_eligibility_text(self) -> None:
        record = CardRecord(
            id="x",
            name="Teferi, Temporal Archmage",
            type_line="Legendary Planeswalker — Teferi",
            oracle_text="Teferi, Temporal Archmage can be your commander.",
        )
        assert record.is_planeswalker
        assert record.grants_commander_eligibility

    def test_primary_type(self) -> None:
        assert CardRecord(id="x", name="x", type_line="Artifact Creature — Golem").primary_type == (
            "Creature"
        )
        assert CardRecord(id="x", name="x", type_line="Basic Land — Forest").primary_type == "Land"
        assert CardRecord(id="x", name="x", type_line="Kindred Tribal").primary_type == "Other"
        assert CardRecord(id="x", name="x").primary_type == "Unknown"


class TestDeckModels:
    def test_zero_quantity_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            CardEntry(raw_name="Sol Ring", quantity=0)

    def test_parsed_deck_total(self) -> None:
        deck = ParsedDeck(
            commander_name="Alesha, Who Smiles at Death",
            entries=[CardEntry("Sol Ring", 1), CardEntry("Island", 30)],
            format=FormatTag.MOXFIELD,
        )
        assert deck.total_cards() == 31
        assert deck.warnings == []


class TestImportResult:
    def _result(self, card_pool: dict[str, CardRecord]) -> ImportResult:
        return ImportResult(
            commander=card_pool["Tymna the Weaver"],
            partners=[card_pool["Thrasios, Triton Hero"]],
            main_deck=[
                ResolvedCard(card_pool["Sol Ring"], 1),
                ResolvedCard(card_pool["Island"], 10),
            ],
            unresolved=[],
            suggestions=[],
            format=FormatTag.EDHREC,
            stats=ImportStats(total_requested=4, resolved=4, unresolved=0),
        )

    def test_total_cards_counts_command_zone(self, card_pool: dict[str, CardRecord]) -> None:
        result = self._result(card_pool)
        assert result.total_cards() == 13
        assert [c.name for c in result.commanders()] == ["Tymna the Weaver", "Thrasios, Triton Hero"]

    def test_deck_payload(self, card_pool: dict[str, CardRecord]) -> None:
        payload = self._result(card_pool).to_deck_payload()

        assert payload["commander"]["name"] == "Tymna the Weaver"
        assert payload["commander"]["color_identity"] == ["B", "W"]
        assert [p["name"] for p in payload["partners"]] == ["Thrasios, Triton Hero"]
        assert payload["cards"] == {"Sol Ring": 1, "Island": 10}
        assert payload["card_categories"] == {"Artifact": 1, "Land": 10}

    def test_resolution_constructors(self, card_pool: dict[str, CardRecord]) -> None:
        hit = Resolution.hit(card_pool["Sol Ring"], suggestion="note")
        miss = Resolution.miss("Unrecognized card name: Xyzzy")

        assert hit.resolved and hit.error is None
        assert not miss.resolved and miss.record is None


class TestProgressEvent:
    def test_to_dict_omits_missing_card_name(self) -> None:
        event = ProgressEvent(stage=ImportStage.PARSING, current=0, total=100)
        assert event.to_dict() == {"stage": "parsing", "current": 0, "total": 100}

    def test_to_dict_with_card_name(self) -> None:
        event = ProgressEvent(stage=ImportStage.RESOLVING, current=2, total=3, card_name="Sol Ring")
        assert event.to_dict()["card_name"] == "Sol Ring"


class TestImportFailure:
    def test_wraps_cause(self) -> None:
        failure = ImportFailure(ValueError("bad line"), format_hint="mtga")

        assert failure.kind == FailureKind.IMPORT_FAILED
        assert failure.status_code == 422
        assert failure.message == "Import failed: bad line"
        assert failure.detail == "Detected format: mtga"

    def test_to_response(self) -> None:
        response = ImportFailure(ValueError("bad line")).to_response()

        assert response.outcome == OutcomeType.KNOWN_FAILURE
        assert response.failure.kind == FailureKind.IMPORT_FAILED
        assert response.failure.detail is None
        assert response.failure.suggestion
