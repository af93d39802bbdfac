from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection, Engine

from models.schema import META_ITEMS_COUNT, META_ITEMS_LAST_SYNC_MS, meta
from storage.db_client import get_engine, upsert_statement


class MetaRepository:
    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_engine()

    def get(self, key: str) -> Optional[str]:
        with self.engine.connect() as conn:
            row = conn.execute(select(meta.c.value).where(meta.c.key == key)).first()
        return row[0] if row else None

    def get_int(self, key: str) -> int:
        try:
            return int(self.get(key) or 0)
        except ValueError:
            return 0

    def get_catalog_state(self) -> Dict[str, Any]:
        return {
            "items_count": self.get_int(META_ITEMS_COUNT),
            "items_last_sync_ms": self.get_int(META_ITEMS_LAST_SYNC_MS),
        }

    def set_many(self, values: Dict[str, Any], conn: Optional[Connection] = None) -> None:
        if not values:
            return
        stmt = upsert_statement(self.engine, meta, ["key"], ["value"])
        rows = [{"key": k, "value": str(v)} for k, v in values.items()]
        if conn is not None:
            conn.execute(stmt, rows)
            return
        with self.engine.begin() as own:
            own.execute(stmt, rows)

    def set_catalog_synced(self, count: int, synced_at_ms: int, conn: Optional[Connection] = None) -> None:
        self.set_many({META_ITEMS_LAST_SYNC_MS: synced_at_ms, META_ITEMS_COUNT: count}, conn=conn)
