from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from models.records import Watch
from models.schema import watches
from storage.db_client import get_engine
from watches.errors import StorageConflict


class WatchRepository:
    def __init__(self, engine: Optional[Engine] = None):
        self.engine = engine or get_engine()

    def get(self, watch_id: int) -> Optional[Watch]:
        with self.engine.connect() as conn:
            row = conn.execute(select(watches).where(watches.c.id == watch_id)).mappings().first()
        return Watch.from_row(row) if row else None

    def find_by_key(self, scope_id: str, user_id: str, item_key: str) -> Optional[Watch]:
        q = select(watches).where(
            watches.c.scope_id == scope_id,
            watches.c.user_id == user_id,
            watches.c.item_key == item_key,
        )
        with self.engine.connect() as conn:
            row = conn.execute(q.limit(1)).mappings().first()
        return Watch.from_row(row) if row else None

    def count_for_user(self, scope_id: str, user_id: str) -> int:
        q = select(func.count()).select_from(watches).where(
            watches.c.scope_id == scope_id, watches.c.user_id == user_id
        )
        with self.engine.connect() as conn:
            return int(conn.execute(q).scalar() or 0)

    def count_for_scope(self, scope_id: str) -> int:
        q = select(func.count()).select_from(watches).where(watches.c.scope_id == scope_id)
        with self.engine.connect() as conn:
            return int(conn.execute(q).scalar() or 0)

    def insert(
        self,
        scope_id: str,
        channel_id: str,
        user_id: str,
        item_id: str,
        item_name: str,
        item_key: str,
        max_price: int,
        once: bool,
        created_at: int,
    ) -> Watch:
        values = {
            "scope_id": scope_id,
            "channel_id": channel_id,
            "user_id": user_id,
            "item_id": item_id,
            "item_name": item_name,
            "item_key": item_key,
            "max_price": int(max_price),
            "once": bool(once),
            "created_at": int(created_at),
            "cooldown_until": 0,
        }
        try:
            with self.engine.begin() as conn:
                result = conn.execute(watches.insert().values(**values))
                watch_id = int(result.inserted_primary_key[0])
        except IntegrityError as e:
            raise StorageConflict(f"{scope_id}/{user_id}/{item_key}") from e
        return Watch(id=watch_id, **values)

    def update_target(
        self,
        watch_id: int,
        channel_id: str,
        item_id: str,
        item_name: str,
        max_price: int,
        once: bool,
    ) -> Optional[Watch]:
        # cooldown_until is untouched: an update never re-arms the watch.
        with self.engine.begin() as conn:
            conn.execute(
                update(watches)
                .where(watches.c.id == watch_id)
                .values(
                    channel_id=channel_id,
                    item_id=item_id,
                    item_name=item_name,
                    max_price=int(max_price),
                    once=bool(once),
                )
            )
            row = conn.execute(select(watches).where(watches.c.id == watch_id)).mappings().first()
        return Watch.from_row(row) if row else None

    def list_for_user(self, scope_id: str, user_id: str, limit: int = 25) -> List[Watch]:
        q = (
            select(watches)
            .where(watches.c.scope_id == scope_id, watches.c.user_id == user_id)
            .order_by(watches.c.created_at.desc(), watches.c.id.desc())
            .limit(limit)
        )
        with self.engine.connect() as conn:
            return [Watch.from_row(r) for r in conn.execute(q).mappings().all()]

    def list_all(self) -> List[Watch]:
        with self.engine.connect() as conn:
            rows = conn.execute(select(watches).order_by(watches.c.id)).mappings().all()
        return [Watch.from_row(r) for r in rows]

    def delete_matching_key(self, scope_id: str, user_id: str, key: str) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(watches).where(
                    watches.c.scope_id == scope_id,
                    watches.c.user_id == user_id,
                    watches.c.item_key.like(f"%{key}%"),
                )
            )
        return int(result.rowcount or 0)

    def delete_all_for_user(self, scope_id: str, user_id: str) -> int:
        with self.engine.begin() as conn:
            result = conn.execute(
                delete(watches).where(watches.c.scope_id == scope_id, watches.c.user_id == user_id)
            )
        return int(result.rowcount or 0)

    def claim_cooldown(self, watch_id: int, now_ms: int, until_ms: int) -> bool:
        """Move cooldown_until forward only if the watch is still eligible at write time.

        Returns False when another sweep already claimed it (or the row is gone).
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                update(watches)
                .where(watches.c.id == watch_id, watches.c.cooldown_until <= now_ms)
                .values(cooldown_until=int(until_ms))
            )
        return int(result.rowcount or 0) == 1

    def delete(self, watch_id: int) -> bool:
        with self.engine.begin() as conn:
            result = conn.execute(delete(watches).where(watches.c.id == watch_id))
        return int(result.rowcount or 0) == 1
