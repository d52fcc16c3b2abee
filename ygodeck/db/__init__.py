from ygodeck.db.database import get_session, init_db
from ygodeck.db.operations import (
    create_deck,
    create_user,
    deck_to_model,
    delete_deck,
    get_deck,
    get_user,
    get_user_by_identifier,
    get_user_decks,
    update_deck,
)

__all__ = [
    "create_deck",
    "create_user",
    "deck_to_model",
    "delete_deck",
    "get_deck",
    "get_session",
    "get_user",
    "get_user_by_identifier",
    "get_user_decks",
    "init_db",
    "update_deck",
]
