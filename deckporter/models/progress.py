"""
Import progress events.

A full import emits: parsing(0) -> resolving(0..total) ->
detecting_commander(90, only when fallback detection runs) -> complete(100).
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ImportStage(str, Enum):
    """Stages of a deck import."""

    PARSING = "parsing"
    RESOLVING = "resolving"
    DETECTING_COMMANDER = "detecting_commander"
    COMPLETE = "complete"


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    """One progress notification."""

    stage: ImportStage
    current: int
    total: int
    card_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "stage": self.stage.value,
            "current": self.current,
            "total": self.total,
        }
        if self.card_name is not None:
            data["card_name"] = self.card_name
        return data


ProgressCallback = Callable[[ProgressEvent], None]
