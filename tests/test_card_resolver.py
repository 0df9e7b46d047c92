"""Tests for the card resolution ladder."""

from unittest.mock import MagicMock

from deckporter.services.card_cache import CardCache
from deckporter.services.card_resolver import CardResolver, edit_distance, name_variants


class TestNameVariants:
    def test_punctuation_and_stopwords(self) -> None:
        """Hyphens become spaces; leading articles are dropped."""
        assert name_variants("The Ur-Dragon") == ["The Ur Dragon", "Ur-Dragon"]

    def test_ligature(self) -> None:
        """Æ is spelled out."""
        assert name_variants("Æther Vial") == ["Aether Vial"]

    def test_unchanged_variants_dropped(self) -> None:
        """A plain name has no variants."""
        assert name_variants("Sol Ring") == []

    def test_short_variants_dropped(self) -> None:
        """Variants under three characters are too broad to search."""
        assert name_variants("The Ox") == []


class TestEditDistance:
    def test_case_insensitive(self) -> None:
        """Case differences cost nothing."""
        assert edit_distance("SOL RING", "sol ring") == 0
        assert edit_distance("Sol Rng", "Sol Ring") == 1


class TestExactResolution:
    async def test_exact_hit(self, resolver: CardResolver, stub_db) -> None:
        """A known name resolves on the exact step without suggestions."""
        resolution = await resolver.resolve("Sol Ring")

        assert resolution.resolved
        assert resolution.record.name == "Sol Ring"
        assert resolution.suggestion is None
        assert stub_db.exact_calls == ["Sol Ring"]

    async def test_annotations_stripped_before_search(self, resolver: CardResolver, stub_db) -> None:
        """Raw tokens are canonicalized before any lookup."""
        resolution = await resolver.resolve("1x Sol Ring (C21) 263 *F*")

        assert resolution.record.name == "Sol Ring"
        assert stub_db.exact_calls == ["Sol Ring"]

    async def test_second_resolve_hits_cache(
        self, resolver: CardResolver, stub_db, cache: CardCache
    ) -> None:
        """Repeating a name makes no further external calls."""
        first = await resolver.resolve("Sol Ring")
        calls = stub_db.call_count

        second = await resolver.resolve("sol ring")

        assert second.record == first.record
        assert stub_db.call_count == calls
        assert "Sol Ring" in cache


class TestVariantResolution:
    async def test_ligature_variant(self, resolver: CardResolver, stub_db) -> None:
        """A variant hit reports which name was found."""
        resolution = await resolver.resolve("Æther Vial")

        assert resolution.record.name == "Aether Vial"
        assert resolution.suggestion == 'Found "Aether Vial" for "Æther Vial"'
        assert stub_db.exact_calls == ["Æther Vial", "Aether Vial"]

    async def test_variant_cached_under_input_name(
        self, resolver: CardResolver, cache: CardCache
    ) -> None:
        """The cache key is the name that was asked for, not the card's name."""
        await resolver.resolve("Æther Vial")

        assert cache.get("Æther Vial").name == "Aether Vial"


class TestFuzzyResolution:
    async def test_typo_resolves_with_suggestion(self, resolver: CardResolver, stub_db) -> None:
        """A one-letter typo is matched and the correction is reported."""
        resolution = await resolver.resolve("Sol Rng")

        assert resolution.resolved
        assert resolution.record.name == "Sol Ring"
        assert '"Sol Ring"' in resolution.suggestion
        assert "Sol Rng" in resolution.suggestion
        assert stub_db.fuzzy_calls == ["Sol"]

    async def test_repeated_typo_short_circuits(
        self, resolver: CardResolver, stub_db, cache: CardCache
    ) -> None:
        """A typo resolved once is served from the cache next time."""
        await resolver.resolve("Sol Rng")
        calls = stub_db.call_count

        resolution = await resolver.resolve("Sol Rng")

        assert resolution.record.name == "Sol Ring"
        assert stub_db.call_count == calls
        assert cache.get("sol rng").name == "Sol Ring"

    async def test_too_distant_is_unresolved(self, resolver: CardResolver) -> None:
        """Candidates beyond the distance limit are rejected."""
        resolution = await resolver.resolve("Sol Rxxxx")

        assert not resolution.resolved
        assert resolution.error == "Unrecognized card name: Sol Rxxxx"

    async def test_ties_keep_service_order(self, stub_db_factory, make_card, cache: CardCache) -> None:
        """Equal distances go to the earlier search result."""
        db = stub_db_factory([make_card("Sol Rind"), make_card("Sol Ring")])
        resolver = CardResolver(db, cache, fuzzy_match_enabled=True, max_distance=2, candidate_limit=10)

        resolution = await resolver.resolve("Sol Rinx")

        assert resolution.record.name == "Sol Rind"

    async def test_candidate_limit(self, stub_db_factory, make_card, cache: CardCache) -> None:
        """Only the first candidates are ranked."""
        db = stub_db_factory([make_card("Sol Talisman"), make_card("Sol Ring")])
        resolver = CardResolver(db, cache, fuzzy_match_enabled=True, max_distance=2, candidate_limit=1)

        resolution = await resolver.resolve("Sol Rng")

        assert not resolution.resolved

    async def test_fuzzy_disabled(self, stub_db, cache: CardCache) -> None:
        """With fuzzy matching off, typos stay unresolved."""
        resolver = CardResolver(stub_db, cache, fuzzy_match_enabled=False)

        resolution = await resolver.resolve("Sol Rng")

        assert not resolution.resolved
        assert stub_db.fuzzy_calls == []


class TestResolutionFailures:
    async def test_empty_name(self, resolver: CardResolver, stub_db) -> None:
        """Blank input is rejected without lookups."""
        resolution = await resolver.resolve("   ")

        assert resolution.error == "Empty card name"
        assert stub_db.call_count == 0

    async def test_database_errors_are_step_misses(
        self, stub_db_factory, card_pool, cache: CardCache
    ) -> None:
        """A failing card database never raises out of resolve()."""
        db = stub_db_factory(card_pool.values(), failing=True)
        resolver = CardResolver(db, cache, fuzzy_match_enabled=True)

        resolution = await resolver.resolve("Sol Ring")

        assert not resolution.resolved
        assert resolution.error == "Unrecognized card name: Sol Ring"
        assert db.exact_calls == ["Sol Ring"]
        assert db.fuzzy_calls == ["Sol"]
        assert len(cache) == 0

    async def test_unexpected_exception_becomes_unresolved(self, stub_db) -> None:
        """Exceptions outside lookups are reported, not raised."""
        broken_cache = MagicMock(spec=CardCache)
        broken_cache.get.side_effect = RuntimeError("cache unavailable")
        resolver = CardResolver(stub_db, broken_cache)

        resolution = await resolver.resolve("Sol Ring")

        assert not resolution.resolved
        assert resolution.error == "Resolution error: cache unavailable"
