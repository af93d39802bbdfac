from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from alerts.formatter import format_price_alert
from messaging.dispatcher import MessageDispatcher
from models.records import Watch

log = logging.getLogger("fleawatch.alerts")


class AlertDispatcher:
    def __init__(self, dispatcher: Optional[MessageDispatcher] = None):
        self.dispatcher = dispatcher or MessageDispatcher()

    def dispatch_price_alert(self, watch: Watch, price: int, sweep_id: Optional[str] = None) -> Dict[str, Any]:
        rev = os.getenv("K_REVISION") or ""
        msg = format_price_alert(watch, price)

        t0 = time.time()
        log.info(
            "alert_send_attempt",
            extra={
                "extra": {
                    "event": "alert_send_attempt",
                    "watch_id": watch.id,
                    "user_id": watch.user_id,
                    "scope_id": watch.scope_id,
                    "item_id": watch.item_id,
                    "price": price,
                    "max_price": watch.max_price,
                    "sweep_id": sweep_id,
                    "revision": rev,
                }
            },
        )

        resp = self.dispatcher.send_discord(channel_id=watch.channel_id, message=msg)
        dt_ms = int((time.time() - t0) * 1000)

        log.info(
            "alert_send_result",
            extra={
                "extra": {
                    "event": "alert_send_result",
                    "watch_id": watch.id,
                    "user_id": watch.user_id,
                    "ok": bool(resp.get("ok")),
                    "latency_ms": dt_ms,
                    "sweep_id": sweep_id,
                    "revision": rev,
                }
            },
        )
        return resp
