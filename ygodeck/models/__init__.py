from ygodeck.models.card import BanStatus, Card, CardImage, DeckSection
from ygodeck.models.deck import DeckEntry, DeckSavePayload, SavedDeck, SavedDeckCard
from ygodeck.models.failure import (
    ApiClientError,
    ApiConnectionError,
    ApiRequestError,
    ApiResponseError,
    AuthenticationError,
    CardRejectedError,
    ConflictError,
    DeckNotFoundError,
    DeckValidationError,
    ErrorResponse,
    FailureKind,
    FieldError,
    InvalidFilterError,
    InvalidTokenError,
    KnownError,
    UpstreamUnavailableError,
)

__all__ = [
    "ApiClientError",
    "ApiConnectionError",
    "ApiRequestError",
    "ApiResponseError",
    "AuthenticationError",
    "BanStatus",
    "Card",
    "CardImage",
    "CardRejectedError",
    "ConflictError",
    "DeckEntry",
    "DeckNotFoundError",
    "DeckSavePayload",
    "DeckSection",
    "DeckValidationError",
    "ErrorResponse",
    "FailureKind",
    "FieldError",
    "InvalidFilterError",
    "InvalidTokenError",
    "KnownError",
    "SavedDeck",
    "SavedDeckCard",
    "UpstreamUnavailableError",
]
