"""
Scryfall card database client.

Read-only async access to the two lookups the resolver needs:
exact name search and a broad name search. Request timeouts live here;
callers treat every failure as "no result".

API docs: https://scryfall.com/docs/api/cards
"""

import logging
from functools import lru_cache
from typing import Any, Protocol

import httpx

from deckporter.config import settings
from deckporter.models.card import CardRecord

logger = logging.getLogger(__name__)

# Statuses Scryfall uses for "no such card" / "query matched nothing"
_NO_RESULT_STATUSES = frozenset({400, 404})


class CardDatabaseError(Exception):
    """Raised when the card database cannot answer a lookup."""


class CardDatabase(Protocol):
    """Card database collaborator consumed by the resolver."""

    async def search_exact(self, name: str) -> list[CardRecord]: ...

    async def search_fuzzy(self, name: str) -> list[CardRecord]: ...


class ScryfallClient:
    """
    CardDatabase backed by the Scryfall REST API.

    Usage:
        async with ScryfallClient() as client:
            records = await client.search_exact("Sol Ring")
    """

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.scryfall_base_url,
            headers={
                "User-Agent": user_agent or settings.user_agent,
                "Accept": "application/json",
            },
            timeout=timeout if timeout is not None else settings.request_timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> "ScryfallClient":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, Any] | None:
        """GET a JSON document. Returns None for Scryfall's "not found" statuses."""
        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise CardDatabaseError(f"Scryfall request failed: {e}") from e

        if response.status_code in _NO_RESULT_STATUSES:
            return None
        if response.status_code != 200:
            raise CardDatabaseError(f"Scryfall returned HTTP {response.status_code} for {path}")

        try:
            data: dict[str, Any] = response.json()
        except ValueError as e:
            raise CardDatabaseError(f"Scryfall returned invalid JSON for {path}") from e
        return data

    async def search_exact(self, name: str) -> list[CardRecord]:
        """
        Look up a card by its exact name.

        Returns:
            A one-element list on a hit, empty list otherwise.

        Raises:
            CardDatabaseError: On transport errors or unexpected statuses
        """
        data = await self._get("/cards/named", {"exact": name})
        if data is None:
            return []
        return [CardRecord.from_scryfall(data)]

    async def search_fuzzy(self, name: str) -> list[CardRecord]:
        """
        Broad name search.

        Returns every card whose name contains the given text, in the
        order Scryfall ranks them (first page only).

        Raises:
            CardDatabaseError: On transport errors or unexpected statuses
        """
        query = name.replace('"', "")
        data = await self._get("/cards/search", {"q": f'name:"{query}"'})
        if data is None:
            return []
        cards: list[dict[str, Any]] = data.get("data", [])
        logger.debug("Scryfall name search %r returned %d cards", query, len(cards))
        return [CardRecord.from_scryfall(card) for card in cards]


@lru_cache(maxsize=1)
def get_scryfall_client() -> ScryfallClient:
    """
    Get the process-wide Scryfall client.

    Closed by the application lifespan on shutdown.
    """
    return ScryfallClient()
