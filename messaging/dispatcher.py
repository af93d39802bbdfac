from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

from messaging.discord import DiscordClient, Message, _dest_hint

log = logging.getLogger("fleawatch.dispatcher")


class MessageDispatcher:
    """Best-effort delivery: never raises, always answers with an {"ok": ...} dict."""

    def __init__(self, discord: Optional[DiscordClient] = None):
        self.discord = discord

    def send_discord(self, channel_id: str, message: Message) -> Dict[str, Any]:
        rev = os.getenv("K_REVISION") or ""
        t0 = time.time()
        log.info(
            "message_send_attempt",
            extra={"extra": {"event": "message_send_attempt", "channel": "discord", "dest": _dest_hint(channel_id), "revision": rev}},
        )
        try:
            if not self.discord:
                self.discord = DiscordClient()
            resp = self.discord.send_message(channel_id=channel_id, message=message)
            dt_ms = int((time.time() - t0) * 1000)
            log.info(
                "message_send_result",
                extra={
                    "extra": {
                        "event": "message_send_result",
                        "channel": "discord",
                        "dest": _dest_hint(channel_id),
                        "ok": bool(resp.get("ok", False)),
                        "latency_ms": dt_ms,
                        "revision": rev,
                    }
                },
            )
            return resp
        except Exception as e:
            dt_ms = int((time.time() - t0) * 1000)
            log.error(
                "message_send_exception",
                extra={
                    "extra": {
                        "event": "message_send_exception",
                        "channel": "discord",
                        "dest": _dest_hint(channel_id),
                        "error_type": type(e).__name__,
                        "message": str(e),
                        "latency_ms": dt_ms,
                        "revision": rev,
                    }
                },
                exc_info=True,
            )
            return {"ok": False, "error_type": type(e).__name__, "message": str(e)}
