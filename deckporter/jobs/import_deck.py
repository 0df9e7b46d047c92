"""
Import a deck file from the command line.

Resolves every card against Scryfall, using and extending the persisted
card cache, then prints a summary and the validation report.

Usage:
    python -m deckporter.jobs.import_deck my_deck.txt [--no-delay]
"""

import argparse
import asyncio
import logging
from pathlib import Path

from deckporter.db.database import async_session_factory, init_db
from deckporter.db.operations import persist_cache, warm_cache
from deckporter.models.import_result import ImportResult
from deckporter.models.progress import ImportStage, ProgressEvent
from deckporter.services.batch_orchestrator import BatchOrchestrator
from deckporter.services.card_cache import CardCache
from deckporter.services.card_resolver import CardResolver
from deckporter.services.deck_importer import DeckImporter
from deckporter.services.scryfall_client import ScryfallClient

logger = logging.getLogger(__name__)


def log_progress(event: ProgressEvent) -> None:
    """Progress callback that logs each stage transition and card."""
    if event.stage is ImportStage.RESOLVING and event.card_name:
        logger.info("[%d/%d] %s", event.current, event.total, event.card_name)
    else:
        logger.info("%s (%d/%d)", event.stage.value, event.current, event.total)


def format_summary(result: ImportResult) -> str:
    """Human-readable import summary."""
    lines = [
        f"Deck: {result.name or '(unnamed)'}",
        f"Format: {result.format.value}",
        f"Commander: {result.commander.name if result.commander else '(none)'}",
    ]
    for partner in result.partners:
        lines.append(f"Partner: {partner.name}")

    lines.append(
        f"Cards: {result.total_cards()} "
        f"({result.stats.resolved} resolved, {result.stats.unresolved} unresolved)"
    )

    for card in result.unresolved:
        lines.append(f"  ! {card.raw_name}: {card.reason}")
    for suggestion in result.suggestions:
        lines.append(f"  ? {suggestion}")

    if result.validation is not None:
        lines.append("Valid: yes" if result.validation.is_valid else "Valid: no")
        lines.extend(f"  error: {e}" for e in result.validation.errors)
        lines.extend(f"  warning: {w}" for w in result.validation.warnings)

    return "\n".join(lines)


async def run_import(path: Path, no_delay: bool = False) -> ImportResult:
    """
    Import one deck file.

    Args:
        path: Deck list file
        no_delay: Skip rate-limit pauses between lookups

    Returns:
        The import result
    """
    text = path.read_text(encoding="utf-8")

    await init_db()
    cache = CardCache()
    async with async_session_factory() as session:
        warmed = await warm_cache(session, cache)
    logger.info("Loaded %d cached cards", warmed)

    async with ScryfallClient() as client:
        orchestrator = BatchOrchestrator(
            CardResolver(client, cache),
            card_delay=0 if no_delay else None,
            batch_delay=0 if no_delay else None,
        )
        result = await DeckImporter(orchestrator).import_deck(text, on_progress=log_progress)

    async with async_session_factory() as session:
        saved = await persist_cache(session, cache)
        await session.commit()
    logger.info("Saved %d new cached cards", saved)

    return result


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import a deck list file")
    parser.add_argument("path", type=Path, help="Deck list exported from a deck builder")
    parser.add_argument(
        "--no-delay",
        action="store_true",
        help="Do not pause between card lookups",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    result = asyncio.run(run_import(args.path, no_delay=args.no_delay))
    print(format_summary(result))


if __name__ == "__main__":
    main()
