"""
Google Calendar HTTP client setup with lazy initialization.
"""

import httpx

from core.config import GOOGLE_CALENDAR_API_BASE_URL, REQUEST_TIMEOUT_SECONDS

_http_client: httpx.AsyncClient | None = None


def create_http_client() -> httpx.AsyncClient:
    """Create a client pointed at the Google Calendar v3 API."""
    return httpx.AsyncClient(
        base_url=GOOGLE_CALENDAR_API_BASE_URL,
        timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS),
        headers={"Content-Type": "application/json"},
    )


def get_http_client() -> httpx.AsyncClient:
    """Get or create the shared Google Calendar client (lazy initialization)."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = create_http_client()
    return _http_client


async def close_http_client():
    """Close the shared client, if one was created."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
