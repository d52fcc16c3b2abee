"""
SQLAlchemy ORM models for persistent storage.

Decks only store catalog card ids and copy counts; card metadata is
re-fetched from the catalog whenever a deck is rendered.
"""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserDB(Base):
    """An account that owns decks."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    decks: Mapped[list["DeckDB"]] = relationship(
        back_populates="owner", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<UserDB(id={self.id}, username={self.username})>"


class DeckDB(Base):
    """
    A user's deck.

    Deck names are unique per owner.
    """

    __tablename__ = "decks"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_deck_owner_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50))
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    owner: Mapped["UserDB"] = relationship(back_populates="decks")
    cards: Mapped[list["DeckCardDB"]] = relationship(
        back_populates="deck", cascade="all, delete-orphan", order_by="DeckCardDB.id"
    )

    def __repr__(self) -> str:
        return f"<DeckDB(id={self.id}, name={self.name}, user_id={self.user_id})>"


class DeckCardDB(Base):
    """A card reference inside a deck."""

    __tablename__ = "deck_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    deck_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("decks.id", ondelete="CASCADE"), index=True
    )
    card_api_id: Mapped[int] = mapped_column(Integer)
    copies: Mapped[int] = mapped_column(Integer, default=1)
    is_extra_deck: Mapped[bool] = mapped_column(Boolean, default=False)

    deck: Mapped["DeckDB"] = relationship(back_populates="cards")

    def __repr__(self) -> str:
        return f"<DeckCardDB(card_api_id={self.card_api_id}, copies={self.copies})>"
