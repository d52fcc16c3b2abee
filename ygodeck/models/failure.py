"""
Failure classification for API and client errors.

Every failure the service knows how to explain is raised as a KnownError
subclass. The application error handlers turn these into JSON bodies of
the shape:

    {"error": "<message>", "kind": "<failure kind>", "details": [...]}

Response categories:
- Input validation: 400 with field-level details
- Authentication: 401 (missing/bad credentials) or 403 (bad token)
- Not found: 404, identical whether absent or owned by someone else
- Conflict: 409 (duplicate deck name or account identity)
- Upstream: 502 when the external card catalog misbehaves

Anything else is an unknown failure and becomes a generic 500.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input validation failures
    INVALID_INPUT = "invalid_input"
    INVALID_FILTER = "invalid_filter"
    VALIDATION_FAILED = "validation_failed"

    # Authorization failures
    UNAUTHENTICATED = "unauthenticated"
    INVALID_TOKEN = "invalid_token"

    # Resource failures
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"

    # Interactive deck-building refusals
    CARD_REJECTED = "card_rejected"

    # Service failures
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"

    # Unknown
    UNKNOWN = "unknown"


class FieldError(BaseModel):
    """A single field-level problem with a request."""

    path: str = Field(..., description="Dotted path to the offending field")
    message: str = Field(..., description="Human readable explanation")


class ErrorResponse(BaseModel):
    """Body returned for every non-success response."""

    error: str = Field(..., description="User-appropriate explanation of what went wrong")
    kind: FailureKind = Field(default=FailureKind.UNKNOWN)
    details: list[FieldError] = Field(default_factory=list)


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        status_code: int = 400,
        details: list[FieldError] | None = None,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        self.details = details or []
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to an ErrorResponse body."""
        return ErrorResponse(error=self.message, kind=self.kind, details=self.details)


class DeckValidationError(KnownError):
    """
    Raised when a deck payload breaks a structural deck rule.

    `details` lists the violations in the order the rules were evaluated.
    """

    def __init__(self, message: str, details: list[FieldError] | None = None):
        super().__init__(
            kind=FailureKind.VALIDATION_FAILED,
            message=message,
            status_code=400,
            details=details,
        )


class InvalidFilterError(KnownError):
    """Raised for malformed card search filters. Retrying will not help."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(
            kind=FailureKind.INVALID_FILTER,
            message="Invalid search parameters.",
            detail=message,
            status_code=400,
            details=[FieldError(path=field, message=message)],
        )


class AuthenticationError(KnownError):
    """Missing or wrong credentials. Never says which part was wrong."""

    def __init__(self, message: str = "Authentication required."):
        super().__init__(kind=FailureKind.UNAUTHENTICATED, message=message, status_code=401)


class InvalidTokenError(KnownError):
    """Bearer token present but invalid or expired."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.INVALID_TOKEN,
            message="Invalid or expired token.",
            status_code=403,
        )


class ConflictError(KnownError):
    """Duplicate deck name or duplicate account identity."""

    def __init__(self, message: str):
        super().__init__(kind=FailureKind.CONFLICT, message=message, status_code=409)


class DeckNotFoundError(KnownError):
    """Deck is absent or not owned by the caller. Both look the same."""

    def __init__(self) -> None:
        super().__init__(kind=FailureKind.NOT_FOUND, message="Deck not found.", status_code=404)


class UpstreamUnavailableError(KnownError):
    """
    The external card catalog failed or answered with an unexpected shape.

    This is never the caller's fault, so it maps to 502. Callers may retry.
    """

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=FailureKind.UPSTREAM_UNAVAILABLE,
            message="Failed to communicate with the card catalog.",
            detail=detail,
            status_code=502,
        )


class CardRejectedError(KnownError):
    """
    A card could not be added to a deck draft.

    Raised by the interactive gate; the draft is left unchanged.
    """

    def __init__(self, card_name: str, message: str):
        self.card_name = card_name
        super().__init__(kind=FailureKind.CARD_REJECTED, message=message, status_code=400)


# --- Client-side failures ---


class ApiClientError(Exception):
    """Base class for failures while talking to the deck builder API."""


class ApiRequestError(ApiClientError):
    """
    The API answered with a non-success status.

    `message` is the `error` field of the response body when present.
    """

    def __init__(self, status_code: int, message: str, details: list[FieldError] | None = None):
        self.status_code = status_code
        self.message = message
        self.details = details or []
        super().__init__(f"HTTP {status_code}: {message}")


class ApiConnectionError(ApiClientError):
    """The request never got a response (network error or timeout)."""


class ApiResponseError(ApiClientError):
    """A success response whose body could not be decoded or understood."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}")
