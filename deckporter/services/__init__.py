from deckporter.services.batch_orchestrator import BatchOrchestrator
from deckporter.services.card_cache import CardCache, cache_key, get_card_cache
from deckporter.services.card_resolver import CardResolver, StepOutcome, StepStatus, name_variants
from deckporter.services.commander_detector import CommanderPick, can_lead_deck, detect_commander
from deckporter.services.deck_importer import DeckImporter
from deckporter.services.result_validator import validate_import_result
from deckporter.services.scryfall_client import (
    CardDatabase,
    CardDatabaseError,
    ScryfallClient,
    get_scryfall_client,
)

__all__ = [
    "BatchOrchestrator",
    "CardCache",
    "CardDatabase",
    "CardDatabaseError",
    "CardResolver",
    "CommanderPick",
    "DeckImporter",
    "ScryfallClient",
    "StepOutcome",
    "StepStatus",
    "cache_key",
    "can_lead_deck",
    "detect_commander",
    "get_card_cache",
    "get_scryfall_client",
    "name_variants",
    "validate_import_result",
]
