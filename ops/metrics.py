from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Timer:
    start: float = field(default_factory=time.time)

    def ms(self) -> int:
        return int((time.time() - self.start) * 1000)


def emit_run_metrics(log: logging.Logger, event: str, counters: Dict[str, Any], timer: Timer) -> Dict[str, Any]:
    """Stamp duration onto a run summary and log it as one structured line."""
    out = dict(counters)
    out["duration_ms"] = timer.ms()
    log.info(event, extra={"extra": {"event": event, **out}})
    return out
