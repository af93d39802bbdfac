from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from config.settings import settings
from market.gql_client import GraphQLClient

ITEM_PRICE_QUERY = """
query ($id: ID!) {
  item(id: $id) {
    id
    name
    avg24hPrice
    lastLowPrice
    sellFor {
      price
      source
    }
  }
}
"""


def _positive_int(v: Any) -> int:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return 0
    return int(v) if v > 0 else 0


@dataclass(frozen=True)
class PriceQuote:
    item_id: str
    name: Optional[str]
    avg_price: int = 0
    last_low_price: int = 0
    raw: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @property
    def usable_price(self) -> int:
        """Trailing 24h average first, then most recent low; 0 means no usable price."""
        if self.avg_price > 0:
            return self.avg_price
        if self.last_low_price > 0:
            return self.last_low_price
        return 0


class PriceSource:
    def __init__(self, client: Optional[GraphQLClient] = None, debug: Optional[bool] = None):
        self.client = client or GraphQLClient()
        self.debug = settings.DEBUG_PRICES if debug is None else debug

    def fetch_quote(self, item_id: str) -> Optional[PriceQuote]:
        """Current market quote for one catalog item.

        Returns None when the source does not know the item. Transport problems
        raise TransientFetchFailure.
        """
        data = self.client.query(ITEM_PRICE_QUERY, {"id": item_id})
        it = data.get("item") or {}
        if not it.get("id"):
            return None

        avg = _positive_int(it.get("avg24hPrice"))
        low = _positive_int(it.get("lastLowPrice"))

        raw = None
        if self.debug:
            # Vendor prices are not market prices; they are only kept for debugging.
            vendor = 0
            for offer in it.get("sellFor") or []:
                vendor = max(vendor, _positive_int((offer or {}).get("price")))
            raw = {"avg": avg, "low": low, "vendor": vendor}

        return PriceQuote(item_id=str(it["id"]), name=it.get("name") or None, avg_price=avg, last_low_price=low, raw=raw)
