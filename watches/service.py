from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from catalog.directory import ItemDirectory
from catalog.normalizer import name_key
from config.policy import WatchPolicy
from models.records import Item, Watch
from models.schema import MAX_PRICE
from repos.watch_repo import WatchRepository
from watches.errors import (
    DirectoryEmpty,
    InvalidWatchRequest,
    ItemNotFound,
    LimitExceeded,
    StorageConflict,
)

log = logging.getLogger("fleawatch.watches")


@dataclass(frozen=True)
class UpsertResult:
    created: bool
    watch: Watch

    @property
    def status(self) -> str:
        return "created" if self.created else "updated"


class WatchService:
    def __init__(
        self,
        repo: Optional[WatchRepository] = None,
        directory: Optional[ItemDirectory] = None,
        policy: Optional[WatchPolicy] = None,
    ):
        self.repo = repo or WatchRepository()
        self.directory = directory or ItemDirectory()
        self.policy = policy or WatchPolicy.from_settings()

    def resolve_item(self, raw_name: str) -> Item:
        raw = (raw_name or "").strip()
        if not raw:
            raise InvalidWatchRequest("⚠️ Usage: `/watch item:<name> max_price:<number>`")
        if not self.directory.is_populated():
            raise DirectoryEmpty()
        item = self.directory.resolve(raw)
        if item is None:
            raise ItemNotFound(raw)
        return item

    def resolve_or_suggest(self, text: str, limit: Optional[int] = None) -> Dict[str, Any]:
        """Best match plus ranked suggestions; never raises for a miss."""
        if not self.directory.is_populated():
            raise DirectoryEmpty()
        item = self.directory.resolve(text)
        suggestions = self.directory.suggest(text, limit=limit or self.policy.suggest_limit)
        return {"item": item, "suggestions": suggestions}

    def create_or_update(
        self,
        scope_id: str,
        channel_id: str,
        user_id: str,
        raw_item: str,
        max_price: int,
        once: bool = False,
        now_ms: Optional[int] = None,
    ) -> UpsertResult:
        if not scope_id or not channel_id or not user_id:
            raise InvalidWatchRequest("⚠️ Missing server/channel/user context.")
        if isinstance(max_price, bool) or not isinstance(max_price, int) or not 1 <= max_price <= MAX_PRICE:
            raise InvalidWatchRequest("⚠️ Usage: `/watch item:<name> max_price:<number>`")

        item = self.resolve_item(raw_item)
        return self.upsert_watch(scope_id, channel_id, user_id, item, max_price, once, now_ms=now_ms)

    def upsert_watch(
        self,
        scope_id: str,
        channel_id: str,
        user_id: str,
        item: Item,
        max_price: int,
        once: bool = False,
        now_ms: Optional[int] = None,
    ) -> UpsertResult:
        """Create the (scope, user, item) watch, or update it in place.

        Limits apply to creation only. Updates keep the current cooldown.
        The caps are a count followed by an insert with no lock, so creates
        racing at cap - 1 can each land and overshoot the cap by one per racer.
        """
        key = name_key(item.name)
        existing = self.repo.find_by_key(scope_id, user_id, key)
        if existing is not None:
            result = self._update(existing, channel_id, item, max_price, once)
            if result is not None:
                return result
            # Removed between lookup and update: create it afresh.

        if self.repo.count_for_user(scope_id, user_id) >= self.policy.max_per_user:
            raise LimitExceeded("user", self.policy.max_per_user)
        if self.repo.count_for_scope(scope_id) >= self.policy.max_per_scope:
            raise LimitExceeded("scope", self.policy.max_per_scope)

        created_at = now_ms if now_ms is not None else int(time.time() * 1000)
        try:
            watch = self.repo.insert(
                scope_id=scope_id,
                channel_id=channel_id,
                user_id=user_id,
                item_id=item.id,
                item_name=item.name,
                item_key=key,
                max_price=max_price,
                once=once,
                created_at=created_at,
            )
        except StorageConflict:
            # Lost a race with a concurrent create for the same key: treat as an update.
            log.info("watch_insert_conflict", extra={"extra": {"scope_id": scope_id, "user_id": user_id, "item_key": key}})
            winner = self.repo.find_by_key(scope_id, user_id, key)
            if winner is None:
                raise
            result = self._update(winner, channel_id, item, max_price, once)
            if result is None:
                raise
            return result

        log.info(
            "watch_created",
            extra={"extra": {"watch_id": watch.id, "scope_id": scope_id, "user_id": user_id, "item_id": item.id, "max_price": max_price, "once": once}},
        )
        return UpsertResult(created=True, watch=watch)

    def _update(self, existing: Watch, channel_id: str, item: Item, max_price: int, once: bool) -> Optional[UpsertResult]:
        updated = self.repo.update_target(
            existing.id,
            channel_id=channel_id,
            item_id=item.id,
            item_name=item.name,
            max_price=max_price,
            once=once,
        )
        if updated is None:
            log.info("watch_update_missed", extra={"extra": {"watch_id": existing.id, "scope_id": existing.scope_id}})
            return None
        log.info(
            "watch_updated",
            extra={"extra": {"watch_id": existing.id, "scope_id": existing.scope_id, "user_id": existing.user_id, "max_price": max_price, "once": once}},
        )
        return UpsertResult(created=False, watch=updated)

    def list_watches(self, scope_id: str, user_id: str, limit: Optional[int] = None) -> List[Watch]:
        return self.repo.list_for_user(scope_id, user_id, limit=limit or self.policy.list_limit)

    def remove(self, scope_id: str, user_id: str, raw_item: str) -> int:
        """Delete every watch whose key contains the normalized input.

        A short fragment can remove several watches at once ("ammo" matches
        both "ammo 545" and "ammo 762").
        """
        key = name_key(raw_item)
        if not key:
            raise InvalidWatchRequest("⚠️ Usage: `/unwatch item:<name>`")
        deleted = self.repo.delete_matching_key(scope_id, user_id, key)
        log.info("watch_removed", extra={"extra": {"scope_id": scope_id, "user_id": user_id, "item_key": key, "deleted": deleted}})
        return deleted

    def clear(self, scope_id: str, user_id: str) -> int:
        deleted = self.repo.delete_all_for_user(scope_id, user_id)
        log.info("watches_cleared", extra={"extra": {"scope_id": scope_id, "user_id": user_id, "deleted": deleted}})
        return deleted
