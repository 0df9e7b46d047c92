from collections.abc import Callable, Iterable

import pytest

from deckporter.models.card import CardRecord
from deckporter.services.batch_orchestrator import BatchOrchestrator
from deckporter.services.card_cache import CardCache
from deckporter.services.card_resolver import CardResolver
from deckporter.services.deck_importer import DeckImporter
from deckporter.services.scryfall_client import CardDatabaseError


def _card(
    name: str,
    type_line: str = "Artifact",
    oracle_text: str = "",
    colors: str = "",
) -> CardRecord:
    return CardRecord(
        id=name.lower().replace(" ", "-").replace(",", ""),
        name=name,
        type_line=type_line,
        oracle_text=oracle_text,
        color_identity=frozenset(colors),
    )


class StubCardDatabase:
    """
    In-memory CardDatabase that records every call.

    Exact search is case-insensitive; fuzzy search returns every card whose
    name contains the query, in insertion order.
    """

    def __init__(self, cards: Iterable[CardRecord] = (), failing: bool = False) -> None:
        self.cards = list(cards)
        self.failing = failing
        self.exact_calls: list[str] = []
        self.fuzzy_calls: list[str] = []

    async def search_exact(self, name: str) -> list[CardRecord]:
        self.exact_calls.append(name)
        if self.failing:
            raise CardDatabaseError("Scryfall returned HTTP 503 for /cards/named")
        return [c for c in self.cards if c.name.casefold() == name.casefold()][:1]

    async def search_fuzzy(self, name: str) -> list[CardRecord]:
        self.fuzzy_calls.append(name)
        if self.failing:
            raise CardDatabaseError("Scryfall returned HTTP 503 for /cards/search")
        return [c for c in self.cards if name.casefold() in c.name.casefold()]

    @property
    def call_count(self) -> int:
        return len(self.exact_calls) + len(self.fuzzy_calls)


@pytest.fixture
def make_card() -> Callable[..., CardRecord]:
    """Factory for CardRecords with a name-derived id."""
    return _card


@pytest.fixture
def card_pool() -> dict[str, CardRecord]:
    """A small card database covering the commander shapes used in tests."""
    cards = [
        _card(
            "Alesha, Who Smiles at Death",
            "Legendary Creature — Human Warrior",
            "First strike\nWhenever Alesha, Who Smiles at Death attacks, you may pay {W/B}{W/B}.",
            "R",
        ),
        _card("Sol Ring", "Artifact", "{T}: Add {C}{C}."),
        _card("Command Tower", "Land", "{T}: Add one mana of any color in your commander's color identity."),
        _card("Arcane Signet", "Artifact", "{T}: Add one mana of any color in your commander's color identity."),
        _card("Island", "Basic Land — Island", "({T}: Add {U}.)", "U"),
        _card("Tymna the Weaver", "Legendary Creature — Human Cleric", "Lifelink\nPartner", "WB"),
        _card("Thrasios, Triton Hero", "Legendary Creature — Merfolk Wizard", "{4}: Scry 1.\nPartner", "UG"),
        _card(
            "Shorikai, Genesis Engine",
            "Legendary Artifact — Vehicle",
            "{1}, {T}: Draw two cards, then discard a card.\nCrew 8",
            "WU",
        ),
        _card("Aether Vial", "Artifact", "At the beginning of your upkeep, you may put a charge counter on Aether Vial."),
    ]
    return {card.name: card for card in cards}


@pytest.fixture
def stub_db(card_pool: dict[str, CardRecord]) -> StubCardDatabase:
    return StubCardDatabase(card_pool.values())


@pytest.fixture
def stub_db_factory() -> Callable[..., StubCardDatabase]:
    """Build a StubCardDatabase from an explicit card list."""
    return StubCardDatabase


@pytest.fixture
def cache() -> CardCache:
    """Isolated card cache per test."""
    return CardCache()


@pytest.fixture
def resolver(stub_db: StubCardDatabase, cache: CardCache) -> CardResolver:
    return CardResolver(stub_db, cache, fuzzy_match_enabled=True, max_distance=2, candidate_limit=10)


@pytest.fixture
def importer(resolver: CardResolver) -> DeckImporter:
    """Importer with no rate-limit pauses."""
    orchestrator = BatchOrchestrator(resolver, batch_size=5, card_delay=0, batch_delay=0)
    return DeckImporter(orchestrator, allow_partners=True, first_card_heuristic=True)
