from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from config.settings import Settings, settings as default_settings

MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS


@dataclass(frozen=True)
class WatchPolicy:
    """Tunables shared by the watch service and the sweeper.

    Passed in at construction so tests can shrink windows and caps.
    """

    cooldown_ms: int = 10 * MINUTE_MS
    max_per_user: int = 25
    max_per_scope: int = 500
    catalog_stale_ms: int = 7 * DAY_MS
    catalog_refresh_enabled: bool = True
    list_limit: int = 25
    suggest_limit: int = 25

    @classmethod
    def from_settings(cls, s: Optional[Settings] = None) -> "WatchPolicy":
        s = s or default_settings
        return cls(
            cooldown_ms=int(s.WATCH_COOLDOWN_MINUTES) * MINUTE_MS,
            max_per_user=int(s.MAX_WATCHES_PER_USER),
            max_per_scope=int(s.MAX_WATCHES_PER_SCOPE),
            catalog_stale_ms=int(s.CATALOG_STALE_DAYS) * DAY_MS,
            catalog_refresh_enabled=bool(s.CATALOG_REFRESH_ENABLED),
            list_limit=int(s.LIST_WATCHES_LIMIT),
            suggest_limit=int(s.SUGGEST_LIMIT),
        )
