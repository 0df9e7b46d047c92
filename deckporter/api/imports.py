"""
Deck import API endpoints.

Accepts a plaintext deck export and returns the resolved deck, either as
one JSON document or as an NDJSON stream of progress events.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from deckporter.db.database import get_session, get_session_factory
from deckporter.db.operations import persist_cache
from deckporter.models.card import CardRecord
from deckporter.models.deck import FormatTag
from deckporter.models.failure import FailureKind, ImportFailure, KnownError
from deckporter.models.import_result import ImportResult
from deckporter.parsers.format_detector import detect_format
from deckporter.services.batch_orchestrator import BatchOrchestrator
from deckporter.services.card_cache import CardCache, get_card_cache
from deckporter.services.card_resolver import CardResolver
from deckporter.services.deck_importer import DeckImporter
from deckporter.services.scryfall_client import get_scryfall_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])


class ImportRequest(BaseModel):
    """Request model for deck import and format detection."""

    text: str = Field(..., description="Deck list exported from any supported deck builder")


class DetectResponse(BaseModel):
    """Response model for format detection."""

    format: FormatTag


class FormatsResponse(BaseModel):
    """Supported deck export formats."""

    formats: list[FormatTag]


class CardResponse(BaseModel):
    """One resolved card."""

    id: str
    name: str
    type_line: str = ""
    color_identity: list[str] = Field(default_factory=list)
    image_uris: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, card: CardRecord) -> "CardResponse":
        return cls(
            id=card.id,
            name=card.name,
            type_line=card.type_line,
            color_identity=sorted(card.color_identity),
            image_uris=dict(card.image_uris),
        )


class DeckCardResponse(BaseModel):
    """A main deck card with its quantity."""

    card: CardResponse
    quantity: int


class UnresolvedResponse(BaseModel):
    """A deck line that could not be resolved."""

    raw_name: str
    reason: str
    suggestion: str | None = None


class StatsResponse(BaseModel):
    total_requested: int
    resolved: int
    unresolved: int


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ImportResponse(BaseModel):
    """Response model for a completed import."""

    name: str | None = None
    format: FormatTag
    commander: CardResponse | None = None
    partners: list[CardResponse] = Field(default_factory=list)
    main_deck: list[DeckCardResponse] = Field(default_factory=list)
    unresolved: list[UnresolvedResponse] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    stats: StatsResponse
    validation: ValidationResponse | None = None
    total_cards: int = 0

    @classmethod
    def from_result(cls, result: ImportResult) -> "ImportResponse":
        validation = None
        if result.validation is not None:
            validation = ValidationResponse(
                is_valid=result.validation.is_valid,
                errors=list(result.validation.errors),
                warnings=list(result.validation.warnings),
            )

        return cls(
            name=result.name,
            format=result.format,
            commander=CardResponse.from_record(result.commander) if result.commander else None,
            partners=[CardResponse.from_record(p) for p in result.partners],
            main_deck=[
                DeckCardResponse(card=CardResponse.from_record(rc.card), quantity=rc.quantity)
                for rc in result.main_deck
            ],
            unresolved=[
                UnresolvedResponse(raw_name=u.raw_name, reason=u.reason, suggestion=u.suggestion)
                for u in result.unresolved
            ],
            suggestions=list(result.suggestions),
            stats=StatsResponse(
                total_requested=result.stats.total_requested,
                resolved=result.stats.resolved,
                unresolved=result.stats.unresolved,
            ),
            validation=validation,
            total_cards=result.total_cards(),
        )


def get_deck_importer(
    cache: Annotated[CardCache, Depends(get_card_cache)],
) -> DeckImporter:
    """Dependency that builds an importer around the shared client and cache."""
    resolver = CardResolver(get_scryfall_client(), cache)
    return DeckImporter(BatchOrchestrator(resolver))


def _require_text(request: ImportRequest) -> str:
    if not request.text.strip():
        error = KnownError(
            kind=FailureKind.INVALID_INPUT,
            message="Deck text is empty",
            suggestion="Paste a deck list exported from your deck builder.",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
        raise HTTPException(
            status_code=error.status_code,
            detail=error.to_response().model_dump(mode="json"),
        )
    return request.text


@router.get("/formats", response_model=FormatsResponse)
async def list_formats() -> FormatsResponse:
    """List the deck export formats the importer recognises."""
    return FormatsResponse(formats=list(FormatTag))


@router.post("/detect", response_model=DetectResponse)
async def detect(request: ImportRequest) -> DetectResponse:
    """Detect which deck builder produced the text, without resolving cards."""
    return DetectResponse(format=detect_format(_require_text(request)))


@router.post("", response_model=ImportResponse)
async def import_deck(
    request: ImportRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    importer: Annotated[DeckImporter, Depends(get_deck_importer)],
) -> ImportResponse:
    """
    Import a deck list.

    Unresolvable cards do not fail the request; they are listed in
    `unresolved`. Returns 422 only if the text could not be parsed.
    """
    text = _require_text(request)

    try:
        result = await importer.import_deck(text)
    except ImportFailure as e:
        raise HTTPException(
            status_code=e.status_code,
            detail=e.to_response().model_dump(mode="json"),
        ) from e

    saved = await persist_cache(session, importer.orchestrator.resolver.cache)
    if saved:
        logger.info("Persisted %d new card cache entries", saved)

    return ImportResponse.from_result(result)


async def _ndjson_events(
    importer: DeckImporter,
    text: str,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[str]:
    try:
        async for item in importer.stream_import(text):
            payload: dict[str, Any]
            if isinstance(item, ImportResult):
                # Persist before the result line
                async with session_factory() as session:
                    saved = await persist_cache(session, importer.orchestrator.resolver.cache)
                    await session.commit()
                if saved:
                    logger.info("Persisted %d new card cache entries", saved)
                payload = {"stage": "result", **ImportResponse.from_result(item).model_dump(mode="json")}
            else:
                payload = item.to_dict()
            yield json.dumps(payload) + "\n"
    except ImportFailure as e:
        yield json.dumps({"stage": "error", **e.to_response().model_dump(mode="json")}) + "\n"


@router.post("/stream")
async def stream_import(
    request: ImportRequest,
    session_factory: Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)],
    importer: Annotated[DeckImporter, Depends(get_deck_importer)],
) -> StreamingResponse:
    """
    Import a deck list, streaming progress.

    Body is NDJSON: one object per progress event, then a final object
    with "stage": "result" (or "stage": "error" if parsing failed).
    Newly cached cards are persisted before the result line is sent.
    """
    text = _require_text(request)
    return StreamingResponse(
        _ndjson_events(importer, text, session_factory),
        media_type="application/x-ndjson",
    )
