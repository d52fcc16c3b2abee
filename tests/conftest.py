from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from ygodeck.api.deps import get_catalog
from ygodeck.db.database import build_engine, build_session_factory, get_session
from ygodeck.main import app
from ygodeck.models.card import BanStatus, Card
from ygodeck.models.db import Base
from ygodeck.services.catalog import CatalogClient

CATALOG_URL = "https://db.ygoprodeck.com/api/v7/cardinfo.php"


def make_card(
    card_id: int,
    name: str | None = None,
    card_type: str = "Effect Monster",
    ban_status: BanStatus = BanStatus.UNLIMITED,
    atk: int | str | None = None,
    defense: int | str | None = None,
) -> Card:
    """Build a normalized card for tests."""
    return Card(
        id=card_id,
        name=name or f"Card {card_id}",
        type=card_type,
        atk=atk,
        defense=defense,
        ban_status=ban_status,
    )


def catalog_card(
    card_id: int,
    name: str,
    card_type: str = "Effect Monster",
    ban_tcg: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """A card as the external catalog returns it."""
    raw: dict[str, Any] = {
        "id": card_id,
        "name": name,
        "type": card_type,
        "desc": f"{name} text",
        "card_images": [
            {
                "id": card_id,
                "image_url": f"https://images.example/{card_id}.jpg",
                "image_url_small": f"https://images.example/{card_id}_small.jpg",
            }
        ],
    }
    if ban_tcg is not None:
        raw["banlist_info"] = {"ban_tcg": ban_tcg}
    raw.update(extra)
    return raw


def deck_entries(count: int, copies: int = 3, start_id: int = 1000) -> list[dict[str, Any]]:
    """count distinct entries of `copies` copies each."""
    return [
        {"id": start_id + i, "name": f"Card {start_id + i}", "count": copies} for i in range(count)
    ]


def legal_main_deck() -> list[dict[str, Any]]:
    """40 cards: 13 x 3 + 1 x 1."""
    return deck_entries(13) + [{"id": 2000, "name": "Card 2000", "count": 1}]


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine):
    """Provide an async session for testing."""
    async_session = build_session_factory(async_engine)
    async with async_session() as session:
        yield session


@pytest.fixture
async def catalog():
    """Catalog client whose HTTP calls are intercepted by respx."""
    async with CatalogClient(base_url=CATALOG_URL, client=httpx.AsyncClient()) as client:
        yield client


@pytest.fixture
async def client(async_engine, catalog):
    """Provide an async test client with overridden database session and catalog."""
    async_session = build_session_factory(async_engine)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_catalog] = lambda: catalog

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def register(client: AsyncClient, username: str = "yugi", email: str | None = None) -> str:
    """Register a user and return its bearer token."""
    response = await client.post(
        "/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": "kuriboh123",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["token"]


@pytest.fixture
async def auth_headers(client) -> dict[str, str]:
    token = await register(client)
    return {"Authorization": f"Bearer {token}"}
