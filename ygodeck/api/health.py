"""
Service status endpoints.

/health answers as long as the process runs. /ready additionally needs
the deck store; the banlist overlay is reported but never blocks
readiness, since card search degrades to catalog statuses without it.
"""

import logging
from importlib.metadata import version as pkg_version
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ygodeck.api.deps import Catalog
from ygodeck.db.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str


class ReadyResponse(BaseModel):
    """Readiness of the deck store and the banlist overlay."""

    status: str
    database: str
    banlist: str
    banlist_restricted_cards: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="healthy", version=pkg_version("ygodeck"))


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ReadyResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
    catalog: Catalog,
) -> ReadyResponse:
    """
    Readiness check.

    Returns 503 when decks cannot be read or written.
    """
    restricted = catalog.banlist_size
    banlist = "cold" if restricted is None else "cached"
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Deck store unavailable: %s", e)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadyResponse(
            status="not ready",
            database="disconnected",
            banlist=banlist,
            banlist_restricted_cards=restricted,
        )
    return ReadyResponse(
        status="ready",
        database="connected",
        banlist=banlist,
        banlist_restricted_cards=restricted,
    )
