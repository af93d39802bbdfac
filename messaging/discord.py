from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from config.settings import settings
from utils.http_client import get_http_client
from watches.errors import DispatchFailure

log = logging.getLogger("fleawatch.discord")


def _dest_hint(v: str, keep: int = 4) -> str:
    v = (v or "").strip()
    if not v:
        return ""
    if len(v) <= keep:
        return v
    return f"...{v[-keep:]}"


@dataclass(frozen=True)
class Message:
    text: str
    title: Optional[str] = None
    lines: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": self.text, "allowed_mentions": {"parse": ["users"]}}
        if self.title or self.lines:
            embed: Dict[str, Any] = {}
            if self.title:
                embed["title"] = self.title
            if self.lines:
                embed["description"] = "\n".join(self.lines)
            payload["embeds"] = [embed]
        return payload


class DiscordClient:
    def __init__(self, token: Optional[str] = None, api_base: Optional[str] = None, http: Optional[httpx.Client] = None):
        self.token = token or settings.DISCORD_BOT_TOKEN
        if not self.token:
            raise RuntimeError("DISCORD_BOT_TOKEN not configured")
        self.api_base = (api_base or settings.DISCORD_API_BASE).rstrip("/")
        self.http = http or get_http_client()
        self.timeout = settings.DISCORD_TIMEOUT_S

    def send_message(self, channel_id: str, message: Message) -> Dict[str, Any]:
        rev = os.getenv("K_REVISION") or ""
        url = f"{self.api_base}/channels/{channel_id}/messages"
        headers = {"Authorization": f"Bot {self.token}", "Content-Type": "application/json"}

        t0 = time.time()
        r = self.http.post(url, json=message.to_payload(), headers=headers, timeout=self.timeout)
        dt_ms = int((time.time() - t0) * 1000)

        log.info(
            "discord_send_result",
            extra={
                "extra": {
                    "event": "discord_send_result",
                    "channel": "discord",
                    "dest": _dest_hint(channel_id),
                    "status_code": r.status_code,
                    "latency_ms": dt_ms,
                    "revision": rev,
                }
            },
        )
        if r.status_code >= 300:
            log.warning(
                "discord_send_failed",
                extra={"extra": {"event": "discord_send_failed", "status_code": r.status_code, "resp": (r.text or "")[:500]}},
            )
            raise DispatchFailure(f"discord_http_{r.status_code}", status_code=r.status_code)

        try:
            data = r.json()
        except ValueError:
            data = {}
        return {"ok": True, "status_code": r.status_code, "message_id": (data or {}).get("id")}
