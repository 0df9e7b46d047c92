"""
Name -> card record cache.

Keyed by canonical name (case-folded). Append-only for the process
lifetime: the first write for a key wins and later writes of the same key
are no-ops, so concurrent imports racing on one key need no lock.
"""

from collections.abc import Iterator, Mapping
from functools import lru_cache

from deckporter.models.card import CardRecord


def cache_key(name: str) -> str:
    """Comparison key for a canonical card name."""
    return " ".join(name.split()).casefold()


class CardCache:
    """In-memory card cache, passed explicitly to the resolver."""

    def __init__(self) -> None:
        self._records: dict[str, CardRecord] = {}
        self._unsaved: dict[str, CardRecord] = {}

    def get(self, name: str) -> CardRecord | None:
        return self._records.get(cache_key(name))

    def put(self, name: str, record: CardRecord) -> None:
        """Insert a record under a canonical name. Existing keys are kept."""
        key = cache_key(name)
        if not key or key in self._records:
            return
        self._records[key] = record
        self._unsaved[key] = record

    def seed(self, entries: Mapping[str, CardRecord]) -> int:
        """
        Warm the cache from persisted entries.

        Seeded entries are not reported by drain_new().

        Returns:
            Number of keys added
        """
        added = 0
        for name, record in entries.items():
            key = cache_key(name)
            if key and key not in self._records:
                self._records[key] = record
                added += 1
        return added

    def drain_new(self) -> dict[str, CardRecord]:
        """Return and forget the entries inserted since the last drain."""
        drained, self._unsaved = self._unsaved, {}
        return drained

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and cache_key(name) in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)


@lru_cache(maxsize=1)
def get_card_cache() -> CardCache:
    """
    Get the process-wide card cache.

    Shared by every import in this process. Tests should build their own
    CardCache instead.
    """
    return CardCache()
