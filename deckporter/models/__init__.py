from deckporter.models.card import CardRecord
from deckporter.models.deck import CardEntry, DeckSection, FormatTag, ParsedDeck
from deckporter.models.failure import (
    ApiResponse,
    FailureDetail,
    FailureKind,
    ImportFailure,
    KnownError,
    OutcomeType,
)
from deckporter.models.import_result import (
    ImportResult,
    ImportStats,
    Resolution,
    ResolvedCard,
    UnresolvedCard,
    ValidationReport,
)
from deckporter.models.progress import ImportStage, ProgressCallback, ProgressEvent

__all__ = [
    "ApiResponse",
    "CardEntry",
    "CardRecord",
    "DeckSection",
    "FailureDetail",
    "FailureKind",
    "FormatTag",
    "ImportFailure",
    "ImportResult",
    "ImportStage",
    "ImportStats",
    "KnownError",
    "OutcomeType",
    "ParsedDeck",
    "ProgressCallback",
    "ProgressEvent",
    "Resolution",
    "ResolvedCard",
    "UnresolvedCard",
    "ValidationReport",
]
