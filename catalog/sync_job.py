from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from catalog.catalog_source import CatalogSource
from catalog.directory import ItemDirectory
from config.settings import settings

log = logging.getLogger("fleawatch.catalog.sync")


class CatalogSyncJob:
    def __init__(
        self,
        directory: Optional[ItemDirectory] = None,
        source: Optional[CatalogSource] = None,
        batch_size: Optional[int] = None,
    ):
        self.directory = directory or ItemDirectory()
        self.source = source or CatalogSource()
        self.batch_size = batch_size or settings.CATALOG_SYNC_BATCH_SIZE

    def run(self, replace: bool = False, now_ms: Optional[int] = None) -> Dict[str, Any]:
        sync_id = str(uuid.uuid4())
        log.info("catalog_sync_start", extra={"extra": {"sync_id": sync_id, "replace": replace}})
        try:
            count = self.directory.sync_all(
                self.source.fetch_all_items, batch_size=self.batch_size, replace=replace, now_ms=now_ms
            )
        except Exception as e:
            log.error(
                "catalog_sync_error",
                extra={"extra": {"sync_id": sync_id, "error_type": type(e).__name__, "message": str(e)}},
                exc_info=True,
            )
            raise
        return {"ok": True, "sync_id": sync_id, "items": count}

    def refresh_if_stale(self, now_ms: int, stale_after_ms: int) -> Optional[int]:
        """Re-sync when the last successful sync is older than the window.

        Never raises: a failed refresh is logged and the caller carries on with
        the catalog it already has. A catalog that was never synced is left to
        the explicit admin sync.
        """
        last = self.directory.last_sync_ms()
        if not last or now_ms - last <= stale_after_ms:
            return None
        log.info("catalog_refresh_running", extra={"extra": {"last_sync_ms": last, "age_ms": now_ms - last}})
        try:
            return int(self.run(now_ms=now_ms)["items"])
        except Exception as e:
            log.warning(
                "catalog_refresh_failed",
                extra={"extra": {"error_type": type(e).__name__, "message": str(e)}},
            )
            return None
