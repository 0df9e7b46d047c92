"""
Card Resolution Service.

Maps a raw card token from a deck list to an authoritative CardRecord.

Resolution ladder (first hit wins):
    1. cache     - canonical name lookup, no I/O
    2. exact     - exact name search
    3. variants  - exact search on textual variants of the name
    4. fuzzy     - broad search on the first word, ranked by edit distance

INVARIANTS:
1. Hits from steps 2-4 are cached under the canonical INPUT name, so a
   repeated typo short-circuits at step 1
2. A failing lookup is a step error, never an exception to the caller
3. resolve() never raises; exhausted ladders and unexpected exceptions
   both become an unresolved Resolution
"""

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from rapidfuzz.distance import Levenshtein

from deckporter.config import settings
from deckporter.models.card import CardRecord
from deckporter.models.import_result import Resolution
from deckporter.parsers.canonical import canonicalize
from deckporter.services.card_cache import CardCache
from deckporter.services.scryfall_client import CardDatabase

logger = logging.getLogger(__name__)

_PARENTHESIZED = re.compile(r"\s*\([^)]*\)")
_BRACKETED = re.compile(r"\s*\[[^\]]*\]")
_APOSTROPHES = re.compile(r"['‘’]")
_PUNCTUATION = re.compile(r"[^\w\s]")
_STOPWORDS = re.compile(r"\b(the|of|a|an)\b", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")

# Variants shorter than this are too broad to search for
_MIN_VARIANT_LENGTH = 3


class StepStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Tagged result of one ladder step."""

    status: StepStatus
    record: CardRecord | None = None
    suggestion: str | None = None
    error: str | None = None

    @classmethod
    def hit(cls, record: CardRecord, suggestion: str | None = None) -> "StepOutcome":
        return cls(StepStatus.HIT, record=record, suggestion=suggestion)

    @classmethod
    def miss(cls) -> "StepOutcome":
        return cls(StepStatus.MISS)

    @classmethod
    def failed(cls, error: str) -> "StepOutcome":
        return cls(StepStatus.ERROR, error=error)


ResolutionStep = Callable[[str, str], Awaitable[StepOutcome]]


def _collapse(name: str) -> str:
    return _WHITESPACE.sub(" ", name).strip()


def name_variants(name: str) -> list[str]:
    """
    Textual variants of a canonical name, in the order they are tried.

    Parenthetical-stripped, bracket-stripped, ligature-normalised,
    punctuation-stripped, stopword-stripped. Variants equal to the name,
    shorter than three characters, or repeated are dropped.
    """
    candidates = [
        _collapse(_PARENTHESIZED.sub("", name)),
        _collapse(_BRACKETED.sub("", name)),
        name.replace("æ", "ae").replace("Æ", "Ae"),
        _collapse(_PUNCTUATION.sub(" ", _APOSTROPHES.sub("", name))),
        _collapse(_STOPWORDS.sub(" ", name)),
    ]

    variants: list[str] = []
    for candidate in candidates:
        if candidate and candidate != name and len(candidate) >= _MIN_VARIANT_LENGTH:
            if candidate not in variants:
                variants.append(candidate)
    return variants


def edit_distance(a: str, b: str) -> int:
    """Case-insensitive Levenshtein distance."""
    return int(Levenshtein.distance(a.lower(), b.lower()))


class CardResolver:
    """
    Resolves raw card names against a card database through a cache.

    The cache and database are injected so tests can isolate them.
    """

    def __init__(
        self,
        database: CardDatabase,
        cache: CardCache,
        fuzzy_match_enabled: bool | None = None,
        max_distance: int | None = None,
        candidate_limit: int | None = None,
    ) -> None:
        self._database = database
        self._cache = cache
        self._fuzzy_match_enabled = (
            settings.fuzzy_match_enabled if fuzzy_match_enabled is None else fuzzy_match_enabled
        )
        self._max_distance = settings.fuzzy_max_distance if max_distance is None else max_distance
        self._candidate_limit = (
            settings.fuzzy_candidate_limit if candidate_limit is None else candidate_limit
        )
        self._steps: tuple[tuple[str, ResolutionStep], ...] = (
            ("cache", self._from_cache),
            ("exact", self._exact),
            ("variants", self._variants),
            ("fuzzy", self._fuzzy),
        )

    @property
    def cache(self) -> CardCache:
        return self._cache

    async def resolve(self, raw_name: str) -> Resolution:
        """
        Resolve one raw card name.

        Returns:
            Resolution with a record (and an optional correction note), or
            with an error message when nothing matched.
        """
        try:
            canonical = canonicalize(raw_name)
            if not canonical:
                return Resolution.miss("Empty card name")

            for step_name, step in self._steps:
                outcome = await step(raw_name, canonical)

                if outcome.status is StepStatus.HIT and outcome.record is not None:
                    if step_name != "cache":
                        self._cache.put(canonical, outcome.record)
                    logger.debug("Resolved %r via %s: %s", raw_name, step_name, outcome.record.name)
                    return Resolution.hit(outcome.record, outcome.suggestion)

                if outcome.status is StepStatus.ERROR:
                    logger.warning("Lookup step %s failed for %r: %s", step_name, canonical, outcome.error)

            logger.warning("All resolution attempts failed for: %s", raw_name)
            return Resolution.miss(f"Unrecognized card name: {raw_name}")

        except Exception as e:
            logger.warning("Card resolution failed for %r: %s", raw_name, e)
            return Resolution.miss(f"Resolution error: {e}")

    async def _search(
        self, search: Callable[[str], Awaitable[list[CardRecord]]], name: str
    ) -> list[CardRecord] | str:
        """Run a database search. Returns the error text instead of raising."""
        try:
            return await search(name)
        except Exception as e:
            return str(e) or e.__class__.__name__

    async def _from_cache(self, _raw_name: str, canonical: str) -> StepOutcome:
        record = self._cache.get(canonical)
        return StepOutcome.hit(record) if record else StepOutcome.miss()

    async def _exact(self, _raw_name: str, canonical: str) -> StepOutcome:
        result = await self._search(self._database.search_exact, canonical)
        if isinstance(result, str):
            return StepOutcome.failed(result)
        return StepOutcome.hit(result[0]) if result else StepOutcome.miss()

    async def _variants(self, raw_name: str, canonical: str) -> StepOutcome:
        last_error: str | None = None

        for variant in name_variants(canonical):
            result = await self._search(self._database.search_exact, variant)
            if isinstance(result, str):
                last_error = result
                continue
            if result:
                card = result[0]
                return StepOutcome.hit(card, suggestion=f'Found "{card.name}" for "{raw_name}"')

        return StepOutcome.failed(last_error) if last_error else StepOutcome.miss()

    async def _fuzzy(self, raw_name: str, canonical: str) -> StepOutcome:
        if not self._fuzzy_match_enabled:
            return StepOutcome.miss()

        first_word = canonical.split(" ")[0]
        result = await self._search(self._database.search_fuzzy, first_word)
        if isinstance(result, str):
            return StepOutcome.failed(result)

        best: CardRecord | None = None
        best_distance = self._max_distance + 1

        # Strict "<" keeps the service's own order on ties
        for card in result[: self._candidate_limit]:
            distance = edit_distance(canonical, card.name)
            if distance < best_distance:
                best, best_distance = card, distance

        if best is None:
            return StepOutcome.miss()

        return StepOutcome.hit(
            best,
            suggestion=f'Did you mean "{best.name}"? (fuzzy match for "{raw_name}")',
        )
