from __future__ import annotations

from functools import lru_cache

import httpx


@lru_cache()
def get_http_client() -> httpx.Client:
    """Process-wide connection pool; callers pass their own per-request timeout."""
    return httpx.Client()


def close_http_client() -> None:
    if get_http_client.cache_info().currsize:
        get_http_client().close()
    get_http_client.cache_clear()
