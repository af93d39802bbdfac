from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from market.gql_client import GraphQLClient
from watches.errors import TransientFetchFailure

ALL_ITEMS_QUERY = """
query {
  items {
    id
    name
    shortName
  }
}
"""


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    name: str
    short_name: str = ""


class CatalogSource:
    def __init__(self, client: Optional[GraphQLClient] = None):
        self.client = client or GraphQLClient()

    def fetch_all_items(self) -> List[CatalogEntry]:
        data = self.client.query(ALL_ITEMS_QUERY)
        raw = data.get("items")
        if not isinstance(raw, list) or not raw:
            raise TransientFetchFailure("catalog_empty_listing")

        out: List[CatalogEntry] = []
        for it in raw:
            if not isinstance(it, dict) or not it.get("id") or not it.get("name"):
                continue
            out.append(CatalogEntry(id=str(it["id"]), name=str(it["name"]), short_name=str(it.get("shortName") or "")))
        if not out:
            raise TransientFetchFailure("catalog_malformed_listing")
        return out
