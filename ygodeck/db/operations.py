"""
Database CRUD operations.

Provides async functions for creating, reading, updating, and deleting
users and their decks. Deck reads are always scoped to the owner.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ygodeck.models.db import DeckCardDB, DeckDB, UserDB
from ygodeck.models.deck import DeckEntry, SavedDeck, SavedDeckCard
from ygodeck.models.failure import ConflictError

logger = logging.getLogger(__name__)

DUPLICATE_ACCOUNT_MESSAGE = "Email or username already in use."

# --- User Operations ---


async def get_user(session: AsyncSession, user_id: int) -> UserDB | None:
    """Get a user by id."""
    return await session.get(UserDB, user_id)


async def get_user_by_identifier(session: AsyncSession, identifier: str) -> UserDB | None:
    """Get a user by email or username."""
    result = await session.execute(
        select(UserDB).where(or_(UserDB.email == identifier, UserDB.username == identifier))
    )
    return result.scalars().first()


async def create_user(
    session: AsyncSession, username: str, email: str, password_hash: str
) -> UserDB:
    """
    Create a new user.

    Raises ConflictError if the username or email is taken.
    """
    existing = await session.execute(
        select(UserDB.id).where(or_(UserDB.email == email, UserDB.username == username))
    )
    if existing.first() is not None:
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

    user = UserDB(username=username, email=email, password_hash=password_hash)
    session.add(user)
    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE) from e
    return user


# --- Deck Operations ---


def _duplicate_deck_message(name: str) -> str:
    return f'You already have a deck named "{name}".'


def _card_rows(main_deck: Sequence[DeckEntry], extra_deck: Sequence[DeckEntry]) -> list[DeckCardDB]:
    rows = [
        DeckCardDB(card_api_id=entry.id, copies=entry.count, is_extra_deck=False)
        for entry in main_deck
    ]
    rows.extend(
        DeckCardDB(card_api_id=entry.id, copies=entry.count, is_extra_deck=True)
        for entry in extra_deck
    )
    return rows


async def _name_taken(
    session: AsyncSession, user_id: int, name: str, exclude_deck_id: int | None = None
) -> bool:
    query = select(DeckDB.id).where(DeckDB.user_id == user_id, DeckDB.name == name)
    if exclude_deck_id is not None:
        query = query.where(DeckDB.id != exclude_deck_id)
    result = await session.execute(query)
    return result.first() is not None


async def get_deck(session: AsyncSession, deck_id: int, user_id: int) -> DeckDB | None:
    """
    Get a deck by id, only if it belongs to the user.

    Returns None both when the deck does not exist and when it has
    another owner.
    """
    result = await session.execute(
        select(DeckDB)
        .where(DeckDB.id == deck_id, DeckDB.user_id == user_id)
        .options(selectinload(DeckDB.cards))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_user_decks(session: AsyncSession, user_id: int) -> list[DeckDB]:
    """Get all decks of a user, newest first."""
    result = await session.execute(
        select(DeckDB)
        .where(DeckDB.user_id == user_id)
        .options(selectinload(DeckDB.cards))
        .order_by(DeckDB.id.desc())
    )
    return list(result.scalars().all())


async def create_deck(
    session: AsyncSession,
    user_id: int,
    name: str,
    main_deck: Sequence[DeckEntry],
    extra_deck: Sequence[DeckEntry],
) -> DeckDB:
    """
    Create a deck with its card entries.

    Raises ConflictError if the user already has a deck with this name.
    """
    if await _name_taken(session, user_id, name):
        raise ConflictError(_duplicate_deck_message(name))

    deck = DeckDB(name=name, user_id=user_id, cards=_card_rows(main_deck, extra_deck))
    session.add(deck)
    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError(_duplicate_deck_message(name)) from e

    logger.info("Created deck %d for user %d with %d entries", deck.id, user_id, len(deck.cards))

    # Re-fetch to load server-side timestamps without async lazy loads
    loaded = await get_deck(session, deck.id, user_id)
    if loaded is None:
        msg = f"Deck {deck.id} not found after creation"
        raise RuntimeError(msg)
    return loaded


async def update_deck(
    session: AsyncSession,
    deck_id: int,
    user_id: int,
    name: str,
    main_deck: Sequence[DeckEntry],
    extra_deck: Sequence[DeckEntry],
) -> DeckDB | None:
    """
    Rename a deck and replace its entire card list.

    Existing entries are deleted and recreated within the caller's
    transaction, so a failure leaves the previous entries in place.

    Returns None if the deck does not exist or belongs to someone else.
    Raises ConflictError if another deck of the user already has the name.
    """
    deck = await get_deck(session, deck_id, user_id)
    if deck is None:
        return None

    if await _name_taken(session, user_id, name, exclude_deck_id=deck_id):
        raise ConflictError(_duplicate_deck_message(name))

    # Delete existing entries from database first
    await session.execute(delete(DeckCardDB).where(DeckCardDB.deck_id == deck.id))
    # Clear the ORM list to stay in sync
    deck.cards.clear()

    deck.name = name
    deck.updated_at = func.now()
    deck.cards.extend(_card_rows(main_deck, extra_deck))

    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError(_duplicate_deck_message(name)) from e

    logger.info("Updated deck %d for user %d", deck_id, user_id)
    return await get_deck(session, deck_id, user_id)


async def delete_deck(session: AsyncSession, deck_id: int, user_id: int) -> bool:
    """
    Delete a deck and its card entries.

    Entries are removed through the delete-orphan cascade before the
    deck row itself.

    Returns True if deleted, False if not found.
    """
    deck = await get_deck(session, deck_id, user_id)
    if deck is None:
        return False

    await session.delete(deck)
    await session.flush()

    logger.info("Deleted deck %d for user %d", deck_id, user_id)
    return True


def deck_to_model(db_deck: DeckDB) -> SavedDeck:
    """Convert a database deck to a domain model."""
    return SavedDeck(
        id=db_deck.id,
        name=db_deck.name,
        user_id=db_deck.user_id,
        created_at=db_deck.created_at,
        updated_at=db_deck.updated_at,
        cards=[
            SavedDeckCard(
                id=card.id,
                card_api_id=card.card_api_id,
                copies=card.copies,
                is_extra_deck=card.is_extra_deck,
            )
            for card in db_deck.cards
        ],
    )
