from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import case, delete, func, select
from sqlalchemy.engine import Connection, Engine

from models.records import Item
from models.schema import items
from storage.db_client import get_engine, upsert_statement


class ItemRepository:
    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_engine()

    def get_by_key(self, key: str) -> Optional[Item]:
        q = select(items).where(items.c.name_key == key).order_by(items.c.id).limit(1)
        with self.engine.connect() as conn:
            row = conn.execute(q).mappings().first()
        return Item.from_row(row) if row else None

    def find_containing(self, key: str) -> Optional[Item]:
        # Shortest key wins; ties broken by key then id so the pick is stable.
        q = (
            select(items)
            .where(items.c.name_key.like(f"%{key}%"))
            .order_by(func.length(items.c.name_key), items.c.name_key, items.c.id)
            .limit(1)
        )
        with self.engine.connect() as conn:
            row = conn.execute(q).mappings().first()
        return Item.from_row(row) if row else None

    def search(self, key: str, limit: int = 25) -> List[Item]:
        prefix_rank = case((items.c.name_key.like(f"{key}%"), 0), else_=1)
        q = (
            select(items)
            .where(items.c.name_key.like(f"%{key}%"))
            .order_by(prefix_rank, func.length(items.c.name_key), items.c.name_key, items.c.id)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            rows = conn.execute(q).mappings().all()
        return [Item.from_row(r) for r in rows]

    def count(self) -> int:
        with self.engine.connect() as conn:
            return int(conn.execute(select(func.count()).select_from(items)).scalar() or 0)

    def upsert_batch(self, conn: Connection, rows: Sequence[dict]) -> None:
        if not rows:
            return
        stmt = upsert_statement(self.engine, items, ["id"], ["name", "short_name", "name_key"])
        conn.execute(stmt, list(rows))

    def delete_all(self, conn: Connection) -> int:
        result = conn.execute(delete(items))
        return int(result.rowcount or 0)
