from deckporter.db.database import get_session, get_session_factory, init_db
from deckporter.db.operations import (
    cached_card_to_record,
    load_cached_cards,
    persist_cache,
    save_cached_cards,
    warm_cache,
)

__all__ = [
    "cached_card_to_record",
    "get_session",
    "get_session_factory",
    "init_db",
    "load_cached_cards",
    "persist_cache",
    "save_cached_cards",
    "warm_cache",
]
