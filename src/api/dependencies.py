"""FastAPI dependencies for authentication and shared resources."""

from functools import lru_cache

import httpx
from fastapi import Cookie, Header, HTTPException, status

from api.models.responses import ErrorCodes
from core.database import KeyValueStore, SqliteKeyValueStore
from core.google_client import get_http_client
from services.calendar import StaticTokenProvider, TokenProvider
from services.categories import AssignmentStore, CategoryStore


async def get_token_provider(
    authorization: str | None = Header(None),
    access_token: str | None = Cookie(None),
) -> TokenProvider:
    """
    Bearer token from the Authorization header, falling back to the
    access_token cookie.

    Raises:
        HTTPException: 401 if neither is present
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if not token and access_token:
        token = access_token.strip()

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "Unauthorized",
                "code": ErrorCodes.UNAUTHORIZED,
                "details": [],
            },
        )

    return StaticTokenProvider(token)


@lru_cache
def get_storage() -> KeyValueStore:
    return SqliteKeyValueStore()


@lru_cache
def get_category_store() -> CategoryStore:
    return CategoryStore(get_storage())


@lru_cache
def get_assignment_store() -> AssignmentStore:
    return AssignmentStore(get_storage())


async def get_calendar_client() -> httpx.AsyncClient:
    return get_http_client()
