"""
Card cache persistence.

The cache table is append-only: rows are inserted for new keys and never
updated, matching the in-memory CardCache.
"""

import logging
from collections.abc import Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deckporter.models.card import CardRecord
from deckporter.models.db import CachedCardDB
from deckporter.services.card_cache import CardCache, cache_key

logger = logging.getLogger(__name__)


def cached_card_to_record(row: CachedCardDB) -> CardRecord:
    """Convert a cache row back into a CardRecord."""
    payload = dict(row.payload or {})
    payload.setdefault("id", row.card_id)
    payload.setdefault("name", row.name)
    return CardRecord.from_scryfall(payload)


async def load_cached_cards(session: AsyncSession) -> dict[str, CardRecord]:
    """
    Load every persisted cache entry.

    Returns:
        Canonical name key -> CardRecord
    """
    result = await session.execute(select(CachedCardDB))
    return {row.canonical_name: cached_card_to_record(row) for row in result.scalars()}


async def save_cached_cards(session: AsyncSession, entries: Mapping[str, CardRecord]) -> int:
    """
    Persist cache entries whose keys are not stored yet.

    Existing keys are left untouched (first write wins).

    Returns:
        Number of rows inserted
    """
    keys = {cache_key(name): record for name, record in entries.items() if cache_key(name)}
    if not keys:
        return 0

    result = await session.execute(
        select(CachedCardDB.canonical_name).where(CachedCardDB.canonical_name.in_(list(keys)))
    )
    existing = set(result.scalars())

    inserted = 0
    for key, record in keys.items():
        if key in existing:
            continue
        session.add(
            CachedCardDB(
                canonical_name=key,
                card_id=record.id,
                name=record.name,
                payload=record.to_payload(),
            )
        )
        inserted += 1

    await session.flush()
    logger.debug("Persisted %d new cache entries", inserted)
    return inserted


async def warm_cache(session: AsyncSession, cache: CardCache) -> int:
    """Seed an in-memory cache from the database. Returns keys added."""
    return cache.seed(await load_cached_cards(session))


async def persist_cache(session: AsyncSession, cache: CardCache) -> int:
    """Write entries the cache gained since the last call."""
    return await save_cached_cards(session, cache.drain_new())
