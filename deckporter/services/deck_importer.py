"""
Deck import pipeline.

raw text -> format detection -> dialect parser -> batch resolution
-> commander detection (fallback only) -> validation -> ImportResult

Only a crash in the parsing stage aborts an import (ImportFailure). Per-card
problems end up in ImportResult.unresolved and never raise.
"""

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from deckporter.models.card import CardRecord
from deckporter.models.deck import CardEntry, FormatTag, ParsedDeck
from deckporter.models.failure import ImportFailure
from deckporter.models.import_result import (
    ImportResult,
    ImportStats,
    Resolution,
    ResolvedCard,
    UnresolvedCard,
)
from deckporter.models.progress import ImportStage, ProgressCallback, ProgressEvent
from deckporter.parsers.canonical import extract_deck_name
from deckporter.parsers.dialects import parse_generic
from deckporter.parsers.format_detector import select_dialect
from deckporter.services.batch_orchestrator import BatchOrchestrator
from deckporter.services.commander_detector import detect_commander
from deckporter.services.result_validator import validate_import_result

logger = logging.getLogger(__name__)

# Progress position reported while fallback commander detection runs
DETECTING_COMMANDER_PROGRESS = 90


@dataclass
class _Tally:
    """Resolution outcomes collected while the orchestrator runs."""

    commander: CardRecord | None = None
    main_deck: list[ResolvedCard] = field(default_factory=list)
    flagged: list[CardRecord] = field(default_factory=list)
    unresolved: list[UnresolvedCard] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)
    resolved_count: int = 0


class DeckImporter:
    """
    Imports plaintext deck exports.

    Usage:
        importer = DeckImporter(BatchOrchestrator(CardResolver(client, cache)))
        result = await importer.import_deck(text)
    """

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        allow_partners: bool | None = None,
        first_card_heuristic: bool | None = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.allow_partners = allow_partners
        self.first_card_heuristic = first_card_heuristic

    def parse(self, text: str) -> ParsedDeck:
        """
        Detect the dialect and parse the text.

        Raises:
            ImportFailure: If detection or parsing crashes
        """
        fmt: FormatTag | None = None
        try:
            dialect = select_dialect(text)
            fmt = dialect.tag
            logger.info("Detected deck format: %s", fmt.value)

            if fmt is FormatTag.GENERIC and self.first_card_heuristic is not None:
                return parse_generic(text, first_card_heuristic=self.first_card_heuristic)
            return dialect.parse(text)
        except Exception as e:
            logger.error("Parsing failed (format=%s): %s", fmt.value if fmt else "unknown", e)
            raise ImportFailure(e, format_hint=fmt.value if fmt else None) from e

    async def import_deck(
        self,
        text: str,
        on_progress: ProgressCallback | None = None,
    ) -> ImportResult:
        """
        Import a deck list.

        Args:
            text: Raw deck export
            on_progress: Called synchronously for every progress event

        Returns:
            ImportResult, possibly with unresolved cards

        Raises:
            ImportFailure: If the parsing stage crashes
        """
        result: ImportResult | None = None
        async for item in self.stream_import(text):
            if isinstance(item, ImportResult):
                result = item
            elif on_progress:
                on_progress(item)

        if result is None:
            raise RuntimeError("Import stream ended without a result")
        return result

    async def stream_import(self, text: str) -> AsyncIterator[ProgressEvent | ImportResult]:
        """
        Import a deck list as a stream.

        Yields every ProgressEvent in stage order, then the ImportResult.
        """
        yield ProgressEvent(stage=ImportStage.PARSING, current=0, total=100)
        parsed = self.parse(text)

        names = [entry.raw_name for entry in parsed.entries]
        if parsed.commander_name:
            names.insert(0, parsed.commander_name)

        yield ProgressEvent(
            stage=ImportStage.RESOLVING,
            current=0,
            total=len(names),
            card_name=parsed.commander_name,
        )

        tally = _Tally()
        index = 0
        async for event, resolution in self.orchestrator.iter_resolutions(names):
            self._record(tally, parsed, index, resolution)
            index += 1
            yield event

        commander = tally.commander
        partners: list[CardRecord] = []

        if commander is not None:
            partners = _unique([c for c in tally.flagged if c.id != commander.id])
        elif tally.main_deck:
            yield ProgressEvent(
                stage=ImportStage.DETECTING_COMMANDER,
                current=DETECTING_COMMANDER_PROGRESS,
                total=100,
            )
            pick = detect_commander(
                [rc.card for rc in tally.main_deck],
                flagged_ids={c.id for c in tally.flagged},
                allow_partners=self.allow_partners,
                first_card_heuristic=self.first_card_heuristic,
            )
            if pick:
                commander = pick.commander
                partners = list(pick.partners)
                logger.info("Detected commander: %s", commander.name)

        command_zone = {card.id for card in ([commander] if commander else []) + partners}
        main_deck = [rc for rc in tally.main_deck if rc.card.id not in command_zone]
        unresolved = tally.unresolved

        result = ImportResult(
            commander=commander,
            partners=partners,
            main_deck=main_deck,
            unresolved=unresolved,
            suggestions=tally.suggestions,
            format=parsed.format,
            stats=ImportStats(
                total_requested=len(names),
                resolved=tally.resolved_count,
                unresolved=len(unresolved),
            ),
            warnings=list(parsed.warnings),
            name=extract_deck_name(text),
        )
        result.validation = validate_import_result(result)

        logger.info(
            "Imported %s deck: %d resolved, %d unresolved, commander=%s",
            parsed.format.value,
            result.stats.resolved,
            result.stats.unresolved,
            commander.name if commander else None,
        )

        yield ProgressEvent(stage=ImportStage.COMPLETE, current=100, total=100)
        yield result

    def _record(self, tally: _Tally, parsed: ParsedDeck, index: int, resolution: Resolution) -> None:
        """Sort one resolution into the tally. Index 0 is the commander when named."""
        entry: CardEntry | None
        if parsed.commander_name:
            entry = parsed.entries[index - 1] if index > 0 else None
            raw_name = entry.raw_name if entry else parsed.commander_name
        else:
            entry = parsed.entries[index]
            raw_name = entry.raw_name

        if resolution.suggestion:
            tally.suggestions.append(resolution.suggestion)

        if resolution.record is None:
            tally.unresolved.append(
                UnresolvedCard(
                    raw_name=raw_name,
                    reason=resolution.error or "Unrecognized card name",
                    suggestion=resolution.suggestion,
                )
            )
            return

        tally.resolved_count += 1
        record = resolution.record

        if entry is None:
            tally.commander = record
            return

        if entry.explicit_commander_marker:
            tally.flagged.append(record)

        _add_copies(tally.main_deck, record, entry.quantity)


def _add_copies(main_deck: list[ResolvedCard], record: CardRecord, quantity: int) -> None:
    """Append a card, merging with an earlier line that resolved to the same card."""
    for i, rc in enumerate(main_deck):
        if rc.card.id == record.id:
            main_deck[i] = ResolvedCard(card=rc.card, quantity=rc.quantity + quantity)
            return
    main_deck.append(ResolvedCard(card=record, quantity=quantity))


def _unique(cards: list[CardRecord]) -> list[CardRecord]:
    seen: set[str] = set()
    unique: list[CardRecord] = []
    for card in cards:
        if card.id not in seen:
            seen.add(card.id)
            unique.append(card)
    return unique
