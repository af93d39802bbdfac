from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

from catalog.catalog_source import CatalogEntry
from catalog.normalizer import name_key
from models.records import Item
from ops.metrics import Timer, emit_run_metrics
from repos.item_repo import ItemRepository
from repos.meta_repo import MetaRepository

log = logging.getLogger("fleawatch.catalog.directory")

DEFAULT_SYNC_BATCH = 400


def _now_ms() -> int:
    return int(time.time() * 1000)


class ItemDirectory:
    """Resolve free-text names to canonical catalog items.

    Exact key match first, then the shortest key containing the input.
    Both lookups are heuristics over normalized keys; short fragments can
    match unintended items.
    """

    def __init__(self, items: Optional[ItemRepository] = None, meta: Optional[MetaRepository] = None):
        self.items = items or ItemRepository()
        self.meta = meta or MetaRepository(self.items.engine)

    def item_count(self) -> int:
        return self.meta.get_catalog_state()["items_count"]

    def last_sync_ms(self) -> int:
        return self.meta.get_catalog_state()["items_last_sync_ms"]

    def is_populated(self) -> bool:
        return self.item_count() > 0

    def resolve(self, raw_name: str) -> Optional[Item]:
        key = name_key(raw_name)
        if not key or not self.is_populated():
            return None
        return self.items.get_by_key(key) or self.items.find_containing(key)

    def suggest(self, partial_name: str, limit: int = 25) -> List[Dict[str, str]]:
        if limit <= 0 or not self.is_populated():
            return []
        key = name_key(partial_name)
        return [{"name": it.label, "value": it.name} for it in self.items.search(key, limit=limit)]

    def sync_all(
        self,
        fetch_all_items: Callable[[], Sequence[CatalogEntry]],
        batch_size: int = DEFAULT_SYNC_BATCH,
        replace: bool = False,
        now_ms: Optional[int] = None,
    ) -> int:
        """Import the full catalog listing.

        Runs in one transaction: the sync timestamp and item count are written
        last, so a failed import leaves the previous catalog state untouched.
        """
        t = Timer()
        # Last occurrence wins when the listing repeats an id.
        entries = list({e.id: e for e in fetch_all_items()}.values())
        batch_size = max(1, int(batch_size))

        with self.items.engine.begin() as conn:
            if replace:
                removed = self.items.delete_all(conn)
                log.info("catalog_replace_cleared", extra={"extra": {"removed": removed}})
            for i in range(0, len(entries), batch_size):
                rows = [
                    {"id": e.id, "name": e.name, "short_name": e.short_name or "", "name_key": name_key(e.name)}
                    for e in entries[i:i + batch_size]
                ]
                self.items.upsert_batch(conn, rows)
            self.meta.set_catalog_synced(len(entries), now_ms if now_ms is not None else _now_ms(), conn=conn)

        emit_run_metrics(log, "catalog_sync_complete", {"items": len(entries), "replace": replace, "batch_size": batch_size}, t)
        return len(entries)
