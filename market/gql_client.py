from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

from config.settings import settings
from utils.http_client import get_http_client
from watches.errors import TransientFetchFailure

log = logging.getLogger("fleawatch.market.gql")


class GraphQLClient:
    """Minimal GraphQL-over-HTTP client for the market data API."""

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None, http: Optional[httpx.Client] = None):
        self.url = url or settings.MARKET_GRAPHQL_URL
        self.timeout = timeout if timeout is not None else settings.MARKET_TIMEOUT_S
        self.http = http or get_http_client()

    def query(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        t0 = time.time()
        try:
            r = self.http.post(self.url, json={"query": query, "variables": variables or {}}, timeout=self.timeout)
        except httpx.HTTPError as e:
            log.warning(
                "market_query_transport_error",
                extra={"extra": {"error_type": type(e).__name__, "latency_ms": int((time.time() - t0) * 1000)}},
            )
            raise TransientFetchFailure(f"market_transport_error:{type(e).__name__}") from e

        try:
            data = r.json()
        except ValueError:
            data = None

        if r.status_code >= 400:
            raise TransientFetchFailure(f"market_http_{r.status_code}")
        if not isinstance(data, dict):
            raise TransientFetchFailure("market_bad_json")
        errors = data.get("errors") or []
        if errors:
            first = errors[0] if isinstance(errors[0], dict) else {}
            raise TransientFetchFailure(f"market_gql_error:{first.get('message') or 'unknown'}")

        log.debug(
            "market_query_ok",
            extra={"extra": {"status_code": r.status_code, "latency_ms": int((time.time() - t0) * 1000)}},
        )
        return data.get("data") or {}
