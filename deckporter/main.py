import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from deckporter.api import health_router, imports_router
from deckporter.config import settings
from deckporter.db.database import async_session_factory, init_db
from deckporter.db.operations import warm_cache
from deckporter.services.card_cache import get_card_cache
from deckporter.services.scryfall_client import get_scryfall_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    async with async_session_factory() as session:
        warmed = await warm_cache(session, get_card_cache())
    logger.info("Card cache warmed with %d entries", warmed)
    yield
    await get_scryfall_client().aclose()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("deckporter"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(imports_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
