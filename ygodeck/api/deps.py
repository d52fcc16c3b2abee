"""
Shared request dependencies: the authenticated user and the card catalog.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ygodeck.models.failure import AuthenticationError
from ygodeck.security import decode_access_token
from ygodeck.services.catalog import CatalogClient

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> int:
    """
    Resolve the bearer token to a user id.

    A missing token is 401. A present but invalid or expired token is 403.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return decode_access_token(credentials.credentials)


def get_catalog(request: Request) -> CatalogClient:
    """Catalog client shared by the whole application."""
    catalog: CatalogClient | None = getattr(request.app.state, "catalog", None)
    if catalog is None:
        catalog = CatalogClient()
        request.app.state.catalog = catalog
    return catalog


CurrentUserId = Annotated[int, Depends(get_current_user_id)]
Catalog = Annotated[CatalogClient, Depends(get_catalog)]
