from ygodeck.api.auth import router as auth_router
from ygodeck.api.cards import router as cards_router
from ygodeck.api.decks import router as decks_router
from ygodeck.api.health import router as health_router

__all__ = [
    "auth_router",
    "cards_router",
    "decks_router",
    "health_router",
]
