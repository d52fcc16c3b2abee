"""
Account endpoints: registration and login.

Both return a bearer token for the deck endpoints.
"""

import logging
import re
from typing import Annotated

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from ygodeck.db import create_user, get_user_by_identifier
from ygodeck.db.database import get_session
from ygodeck.models.failure import AuthenticationError
from ygodeck.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

BAD_CREDENTIALS_MESSAGE = "Invalid email/username or password."

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class RegisterRequest(BaseModel):
    """Request body for account registration."""

    username: str = Field(..., min_length=3, max_length=30)
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6)

    @field_validator("username", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not _EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value.lower()


class LoginRequest(BaseModel):
    """Request body for login. identifier is an email or a username."""

    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    """Token plus the identity it was issued for."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    user_id: int = Field(..., serialization_alias="userId")
    username: str


@router.post(
    "/register",
    response_model=AuthResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthResponse:
    """
    Create an account.

    Returns 409 if the username or email is already registered.
    """
    user = await create_user(
        session,
        username=request.username,
        email=request.email,
        password_hash=hash_password(request.password),
    )
    logger.info("Registered user %d (%s)", user.id, user.username)
    return AuthResponse(
        token=create_access_token(user.id, user.email),
        user_id=user.id,
        username=user.username,
    )


@router.post("/login", response_model=AuthResponse, response_model_by_alias=True)
async def login(
    request: LoginRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> AuthResponse:
    """
    Log in with email or username.

    Unknown accounts and wrong passwords get the same 401.
    """
    identifier = request.identifier.strip()
    user = await get_user_by_identifier(session, identifier)
    if user is None and "@" in identifier:
        user = await get_user_by_identifier(session, identifier.lower())

    if user is None or not verify_password(request.password, user.password_hash):
        raise AuthenticationError(BAD_CREDENTIALS_MESSAGE)

    return AuthResponse(
        token=create_access_token(user.id, user.email),
        user_id=user.id,
        username=user.username,
    )
