"""Outbound HTTP — one pooled httpx.AsyncClient per process.

The client is built on first use and closed from the app lifespan. A call
after shutdown (a second TestClient, a dev-server reload) builds a fresh
one instead of failing on a closed pool.

Usage:
    from app.http_client import get_http
    resp = await get_http().post(url, json=payload, timeout=15)
"""

import httpx
from loguru import logger

from .config import APP_VERSION

_LIMITS = httpx.Limits(
    max_connections=20,
    max_keepalive_connections=10,
    keepalive_expiry=30,
)

_client: httpx.AsyncClient | None = None


def get_http() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=30,
            limits=_LIMITS,
            follow_redirects=False,
            headers={"User-Agent": f"ashinaga-api/{APP_VERSION}"},
        )
    return _client


async def close_clients() -> None:
    """Close the shared client if one was opened. Called from lifespan shutdown."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        logger.debug("Outbound HTTP client closed")
    _client = None
