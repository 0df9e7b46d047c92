"""
Batch orchestrator.

Drives the resolver over a list of raw names under Scryfall's rate limit:
names are split into fixed-size batches, each batch resolved strictly
sequentially with a short pause after every card and a longer pause after
every batch. Output order always matches input order.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence

from deckporter.config import settings
from deckporter.models.import_result import Resolution
from deckporter.models.progress import ImportStage, ProgressCallback, ProgressEvent
from deckporter.services.card_resolver import CardResolver

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class BatchOrchestrator:
    """
    Sequential, paced resolution of many card names.

    Args:
        resolver: Card resolver to drive
        batch_size: Names per batch
        card_delay: Seconds to wait after each resolution
        batch_delay: Seconds to wait after each batch
        sleep: Awaitable sleep, replaceable in tests
    """

    def __init__(
        self,
        resolver: CardResolver,
        batch_size: int | None = None,
        card_delay: float | None = None,
        batch_delay: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.resolver = resolver
        self.batch_size = max(1, batch_size or settings.batch_size)
        self.card_delay = settings.card_delay_seconds if card_delay is None else card_delay
        self.batch_delay = settings.batch_delay_seconds if batch_delay is None else batch_delay
        self._sleep = sleep

    async def iter_resolutions(
        self, names: Sequence[str]
    ) -> AsyncIterator[tuple[ProgressEvent, Resolution]]:
        """
        Resolve names one at a time, yielding progress alongside each result.

        Single pass and not restartable. Pairs arrive in input order.
        """
        total = len(names)
        processed = 0

        for start in range(0, total, self.batch_size):
            batch = names[start : start + self.batch_size]

            for name in batch:
                resolution = await self.resolver.resolve(name)
                processed += 1

                event = ProgressEvent(
                    stage=ImportStage.RESOLVING,
                    current=processed,
                    total=total,
                    card_name=name,
                )
                yield event, resolution

                if self.card_delay > 0:
                    await self._sleep(self.card_delay)

            if self.batch_delay > 0:
                await self._sleep(self.batch_delay)

        logger.debug("Resolved %d names in batches of %d", total, self.batch_size)

    async def resolve_all(
        self,
        names: Sequence[str],
        on_progress: ProgressCallback | None = None,
    ) -> list[Resolution]:
        """
        Resolve every name, reporting progress after each one.

        Returns:
            One Resolution per input name, in input order
        """
        results: list[Resolution] = []
        async for event, resolution in self.iter_resolutions(names):
            results.append(resolution)
            if on_progress:
                on_progress(event)
        return results
