from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from alerts.dispatch import AlertDispatcher
from catalog.directory import ItemDirectory
from catalog.sync_job import CatalogSyncJob
from config.policy import WatchPolicy
from market.price_source import PriceSource
from models.records import Watch
from ops.metrics import Timer, emit_run_metrics
from repos.watch_repo import WatchRepository
from utils.request_context import sweep_scope
from watches.errors import TransientFetchFailure

log = logging.getLogger("fleawatch.sweep")

# Per-watch outcomes
SKIPPED_COOLDOWN = "skipped_cooldown"
SKIPPED_NO_ITEM = "skipped_no_item"
SKIPPED_NO_PRICE = "skipped_no_price"
SKIPPED_FETCH_FAILED = "skipped_fetch_failed"
ABOVE_THRESHOLD = "above_threshold"
CLAIMED_ELSEWHERE = "claimed_elsewhere"
TRIGGERED = "triggered"


@dataclass
class SweepStats:
    sweep_id: str
    watches: int = 0
    evaluated: int = 0
    skipped_cooldown: int = 0
    skipped_no_item: int = 0
    skipped_no_price: int = 0
    skipped_fetch_failed: int = 0
    above_threshold: int = 0
    claimed_elsewhere: int = 0
    triggered: int = 0
    alerts_ok: int = 0
    alerts_failed: int = 0
    once_deleted: int = 0
    errors: int = 0
    catalog_refreshed: bool = False
    aborted: Optional[str] = None

    def count(self, outcome: str) -> None:
        setattr(self, outcome, getattr(self, outcome) + 1)


class WatchSweeper:
    """One pass over every stored watch.

    Each watch is evaluated on its own; a failure on one is logged and the
    pass moves on. A trigger first claims the cooldown with a conditional
    write, so two overlapping sweeps cannot alert the same watch twice.
    """

    def __init__(
        self,
        repo: Optional[WatchRepository] = None,
        directory: Optional[ItemDirectory] = None,
        prices: Optional[PriceSource] = None,
        alerts: Optional[AlertDispatcher] = None,
        catalog_sync: Optional[CatalogSyncJob] = None,
        policy: Optional[WatchPolicy] = None,
    ):
        self.repo = repo or WatchRepository()
        self.directory = directory or ItemDirectory()
        self.prices = prices or PriceSource()
        self.alerts = alerts or AlertDispatcher()
        self.catalog_sync = catalog_sync
        self.policy = policy or WatchPolicy.from_settings()

    def run(self, now_ms: Optional[int] = None) -> Dict[str, Any]:
        t = Timer()
        now = now_ms if now_ms is not None else int(time.time() * 1000)
        stats = SweepStats(sweep_id=str(uuid.uuid4()))
        with sweep_scope(stats.sweep_id):
            return self._run(stats, now, t)

    def _run(self, stats: SweepStats, now: int, t: Timer) -> Dict[str, Any]:
        if self.policy.catalog_refresh_enabled and self.catalog_sync is not None:
            refreshed = self.catalog_sync.refresh_if_stale(now, self.policy.catalog_stale_ms)
            stats.catalog_refreshed = refreshed is not None

        if not self.directory.is_populated():
            log.warning("sweep_directory_empty", extra={"extra": {"sweep_id": stats.sweep_id}})
            stats.aborted = "directory_empty"
            return self._finish(stats, t)

        snapshot = self.repo.list_all()
        stats.watches = len(snapshot)

        for watch in snapshot:
            try:
                outcome = self.evaluate(watch, now, stats)
                stats.count(outcome)
            except Exception as e:
                stats.errors += 1
                log.error(
                    "sweep_watch_error",
                    extra={
                        "extra": {
                            "sweep_id": stats.sweep_id,
                            "watch_id": watch.id,
                            "error_type": type(e).__name__,
                            "message": str(e),
                        }
                    },
                    exc_info=True,
                )

        return self._finish(stats, t)

    def evaluate(self, watch: Watch, now_ms: int, stats: SweepStats) -> str:
        if watch.cooldown_until > now_ms:
            return SKIPPED_COOLDOWN
        if not watch.item_id:
            return SKIPPED_NO_ITEM

        stats.evaluated += 1
        try:
            quote = self.prices.fetch_quote(watch.item_id)
        except TransientFetchFailure as e:
            log.warning(
                "price_fetch_failed",
                extra={"extra": {"sweep_id": stats.sweep_id, "watch_id": watch.id, "item_id": watch.item_id, "message": str(e)}},
            )
            return SKIPPED_FETCH_FAILED

        price = quote.usable_price if quote is not None else 0
        if quote is not None and quote.raw:
            log.debug(
                "price_debug",
                extra={"extra": {"sweep_id": stats.sweep_id, "item_name": watch.item_name, **quote.raw, "using": price}},
            )
        if price <= 0:
            return SKIPPED_NO_PRICE
        if price > watch.max_price:
            return ABOVE_THRESHOLD

        if not self.repo.claim_cooldown(watch.id, now_ms, now_ms + self.policy.cooldown_ms):
            return CLAIMED_ELSEWHERE

        log.info(
            "watch_triggered",
            extra={"extra": {"sweep_id": stats.sweep_id, "watch_id": watch.id, "item_id": watch.item_id, "price": price, "max_price": watch.max_price, "once": watch.once}},
        )
        resp = self.alerts.dispatch_price_alert(watch, price, sweep_id=stats.sweep_id)
        if resp.get("ok"):
            stats.alerts_ok += 1
        else:
            # The threshold was genuinely met; the state transition stands.
            stats.alerts_failed += 1
            log.warning(
                "alert_dispatch_failed",
                extra={"extra": {"sweep_id": stats.sweep_id, "watch_id": watch.id, "error_type": resp.get("error_type")}},
            )

        if watch.once and self.repo.delete(watch.id):
            stats.once_deleted += 1
        return TRIGGERED

    def _finish(self, stats: SweepStats, t: Timer) -> Dict[str, Any]:
        counters = asdict(stats)
        counters["ok"] = stats.aborted is None
        return emit_run_metrics(log, "watch_sweep_metrics", counters, t)
