"""Tests for the deck import endpoints."""

import json
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from deckporter.api.imports import get_deck_importer
from deckporter.db.database import get_session, get_session_factory
from deckporter.db.operations import load_cached_cards
from deckporter.main import app
from deckporter.models.db import Base
from deckporter.services.deck_importer import DeckImporter

SCENARIO_A = "Commander: Alesha, Who Smiles at Death\n\nMain:\n1 Sol Ring\n1 Command Tower"


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory, importer: DeckImporter):
    """Async test client with an in-memory database and a stubbed card database."""

    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_deck_importer] = lambda: importer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestFormats:
    async def test_lists_formats(self, client: AsyncClient) -> None:
        """Every supported dialect is listed."""
        response = await client.get("/imports/formats")

        assert response.status_code == 200
        formats = response.json()["formats"]
        assert "moxfield" in formats
        assert "generic" in formats
        assert len(formats) == 8


class TestDetect:
    async def test_detects_edhrec(self, client: AsyncClient) -> None:
        """Detection runs without resolving cards."""
        response = await client.post(
            "/imports/detect", json={"text": "1x Alesha, Who Smiles at Death *CMDR*\n1x Sol Ring"}
        )

        assert response.status_code == 200
        assert response.json() == {"format": "edhrec"}

    async def test_empty_text_rejected(self, client: AsyncClient) -> None:
        """Blank text is a bad request."""
        response = await client.post("/imports/detect", json={"text": "   "})

        assert response.status_code == 400

    async def test_missing_text_rejected(self, client: AsyncClient) -> None:
        """The text field is required."""
        response = await client.post("/imports/detect", json={})

        assert response.status_code == 422


class TestImport:
    async def test_import_deck(self, client: AsyncClient) -> None:
        """A deck imports with commander, main deck and validation."""
        response = await client.post("/imports", json={"text": SCENARIO_A})

        assert response.status_code == 200
        data = response.json()
        assert data["format"] == "moxfield"
        assert data["commander"]["name"] == "Alesha, Who Smiles at Death"
        assert [c["card"]["name"] for c in data["main_deck"]] == ["Sol Ring", "Command Tower"]
        assert data["stats"] == {"total_requested": 3, "resolved": 3, "unresolved": 0}
        assert data["total_cards"] == 3
        assert data["validation"]["is_valid"] is True
        assert any("fewer than 50" in w for w in data["validation"]["warnings"])

    async def test_import_reports_unresolved(self, client: AsyncClient) -> None:
        """Unknown cards are listed without failing the request."""
        response = await client.post("/imports", json={"text": SCENARIO_A + "\n1 Mystery Card"})

        assert response.status_code == 200
        unresolved = response.json()["unresolved"]
        assert unresolved == [
            {
                "raw_name": "Mystery Card",
                "reason": "Unrecognized card name: Mystery Card",
                "suggestion": None,
            }
        ]

    async def test_import_persists_cache(self, client: AsyncClient, session_factory) -> None:
        """Newly resolved cards are saved to the cache table."""
        await client.post("/imports", json={"text": SCENARIO_A.replace("Sol Ring", "Sol Rng")})

        async with session_factory() as session:
            cached = await load_cached_cards(session)

        assert cached["sol rng"].name == "Sol Ring"
        assert "alesha, who smiles at death" in cached

    async def test_empty_text_rejected(self, client: AsyncClient) -> None:
        """Blank text is a bad request with an invalid-input envelope."""
        response = await client.post("/imports", json={"text": ""})

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["outcome"] == "known_failure"
        assert detail["failure"]["kind"] == "invalid_input"
        assert detail["failure"]["message"] == "Deck text is empty"

    async def test_parse_failure_is_422(self, client: AsyncClient) -> None:
        """A parser crash is reported in the failure envelope."""
        with patch(
            "deckporter.services.deck_importer.select_dialect",
            side_effect=ValueError("unexpected layout"),
        ):
            response = await client.post("/imports", json={"text": SCENARIO_A})

        assert response.status_code == 422
        failure = response.json()["detail"]["failure"]
        assert failure["kind"] == "import_failed"
        assert failure["message"] == "Import failed: unexpected layout"


class TestStream:
    async def test_streams_progress_then_result(self, client: AsyncClient) -> None:
        """NDJSON lines: parsing, resolving..., complete, result."""
        response = await client.post("/imports/stream", json={"text": SCENARIO_A})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        lines = [json.loads(line) for line in response.text.splitlines() if line]
        stages = [line["stage"] for line in lines]
        assert stages[0] == "parsing"
        assert stages[-2] == "complete"
        assert stages[-1] == "result"
        assert stages.count("resolving") == 4
        assert lines[-1]["commander"]["name"] == "Alesha, Who Smiles at Death"

    async def test_stream_parse_failure(self, client: AsyncClient) -> None:
        """A parser crash ends the stream with an error line."""
        with patch(
            "deckporter.services.deck_importer.select_dialect",
            side_effect=ValueError("unexpected layout"),
        ):
            response = await client.post("/imports/stream", json={"text": SCENARIO_A})

        lines = [json.loads(line) for line in response.text.splitlines() if line]
        assert lines[-1]["stage"] == "error"
        assert lines[-1]["failure"]["kind"] == "import_failed"

    async def test_stream_persists_cache(self, client: AsyncClient, session_factory) -> None:
        """Cards resolved during a stream are saved to the cache table."""
        response = await client.post(
            "/imports/stream", json={"text": SCENARIO_A.replace("Sol Ring", "Sol Rng")}
        )

        assert response.status_code == 200
        async with session_factory() as session:
            cached = await load_cached_cards(session)

        assert cached["sol rng"].name == "Sol Ring"
        assert "command tower" in cached

    async def test_stream_empty_text_rejected(self, client: AsyncClient) -> None:
        """Blank text is rejected before streaming starts."""
        response = await client.post("/imports/stream", json={"text": " "})

        assert response.status_code == 400
        assert response.json()["detail"]["failure"]["kind"] == "invalid_input"
