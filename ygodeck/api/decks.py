"""
Deck endpoints.

CRUD for the authenticated user's decks. Every read and write is scoped to
the owner; another user's deck is reported as not found.
"""

import re
from collections.abc import Sequence
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from ygodeck.api.deps import CurrentUserId
from ygodeck.db import (
    create_deck,
    deck_to_model,
    delete_deck,
    get_deck,
    get_user_decks,
    update_deck,
)
from ygodeck.db.database import get_session
from ygodeck.models.db import DeckDB
from ygodeck.models.deck import DeckEntry
from ygodeck.models.failure import DeckNotFoundError, FailureKind, KnownError
from ygodeck.rules import validate_deck

router = APIRouter(prefix="/decks", tags=["decks"])

_DECK_ID = re.compile(r"[0-9]+")

# SQLite INTEGER range
MAX_DECK_ID = 2**63 - 1

Session = Annotated[AsyncSession, Depends(get_session)]
DeckBody = Annotated[dict[str, Any], Body()]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeckCardResponse(CamelModel):
    """A stored card reference."""

    id: int
    card_api_id: int
    copies: int
    is_extra_deck: bool


class DeckResponse(CamelModel):
    """A deck with computed section totals."""

    id: int
    name: str
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cards: list[DeckCardResponse]
    main_deck_count: int
    extra_deck_count: int
    main_deck_unique: int
    extra_deck_unique: int


class DeckEnvelope(BaseModel):
    deck: DeckResponse


class DeckMessageEnvelope(BaseModel):
    message: str
    deck: DeckResponse


class DeckListEnvelope(BaseModel):
    decks: list[DeckResponse]


class MessageResponse(BaseModel):
    message: str


def _deck_response(db_deck: DeckDB) -> DeckResponse:
    model = deck_to_model(db_deck)
    return DeckResponse(
        id=model.id,
        name=model.name,
        user_id=model.user_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
        cards=[
            DeckCardResponse(
                id=card.id,
                card_api_id=card.card_api_id,
                copies=card.copies,
                is_extra_deck=card.is_extra_deck,
            )
            for card in model.cards
        ],
        main_deck_count=model.main_deck_count(),
        extra_deck_count=model.extra_deck_count(),
        main_deck_unique=model.main_deck_unique(),
        extra_deck_unique=model.extra_deck_unique(),
    )


def _parse_deck_id(raw: str) -> int:
    if not _DECK_ID.fullmatch(raw):
        raise KnownError(FailureKind.INVALID_INPUT, "Invalid deck id.", status_code=400)
    deck_id = int(raw)
    # Larger ids cannot be stored, so no such deck exists
    if deck_id > MAX_DECK_ID:
        raise DeckNotFoundError()
    return deck_id


def _entries(raw: Sequence[Any]) -> list[DeckEntry]:
    return [
        DeckEntry(id=item["id"], name=str(item.get("name") or ""), count=item["count"])
        for item in raw
    ]


def _validated_deck(body: dict[str, Any]) -> tuple[str, list[DeckEntry], list[DeckEntry]]:
    """
    Check a save payload against the deck rules.

    Raises DeckValidationError with field-level details.
    """
    name = body.get("name")
    if isinstance(name, str):
        name = name.strip()
    main_deck = body.get("mainDeck", [])
    extra_deck = body.get("extraDeck", [])

    validate_deck(name, main_deck, extra_deck).raise_for_violations()
    return name, _entries(main_deck), _entries(extra_deck)


@router.post("", response_model=DeckMessageEnvelope, status_code=status.HTTP_201_CREATED)
async def create_user_deck(
    body: DeckBody,
    user_id: CurrentUserId,
    session: Session,
) -> DeckMessageEnvelope:
    """
    Save a new deck.

    Returns 400 if the deck breaks a rule and 409 if the name is taken.
    """
    name, main_deck, extra_deck = _validated_deck(body)
    db_deck = await create_deck(session, user_id, name, main_deck, extra_deck)
    return DeckMessageEnvelope(message="Deck created successfully.", deck=_deck_response(db_deck))


@router.get("", response_model=DeckListEnvelope)
async def list_user_decks(user_id: CurrentUserId, session: Session) -> DeckListEnvelope:
    """List the caller's decks, newest first."""
    db_decks = await get_user_decks(session, user_id)
    return DeckListEnvelope(decks=[_deck_response(d) for d in db_decks])


@router.get("/{deck_id}", response_model=DeckEnvelope)
async def get_user_deck(deck_id: str, user_id: CurrentUserId, session: Session) -> DeckEnvelope:
    """Get one of the caller's decks."""
    db_deck = await get_deck(session, _parse_deck_id(deck_id), user_id)
    if db_deck is None:
        raise DeckNotFoundError()
    return DeckEnvelope(deck=_deck_response(db_deck))


@router.put("/{deck_id}", response_model=DeckMessageEnvelope)
async def update_user_deck(
    deck_id: str,
    body: DeckBody,
    user_id: CurrentUserId,
    session: Session,
) -> DeckMessageEnvelope:
    """
    Rename a deck and replace all of its cards.

    The replacement happens in the request transaction; on failure the
    old cards are kept.
    """
    parsed_id = _parse_deck_id(deck_id)
    name, main_deck, extra_deck = _validated_deck(body)
    db_deck = await update_deck(session, parsed_id, user_id, name, main_deck, extra_deck)
    if db_deck is None:
        raise DeckNotFoundError()
    return DeckMessageEnvelope(message="Deck updated successfully.", deck=_deck_response(db_deck))


@router.delete("/{deck_id}", response_model=MessageResponse)
async def delete_user_deck(
    deck_id: str, user_id: CurrentUserId, session: Session
) -> MessageResponse:
    """Delete one of the caller's decks."""
    deleted = await delete_deck(session, _parse_deck_id(deck_id), user_id)
    if not deleted:
        raise DeckNotFoundError()
    return MessageResponse(message="Deck deleted successfully.")
