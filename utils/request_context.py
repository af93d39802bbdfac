from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Iterator

# Correlation ids picked up by the JSON log formatter.
_request_id_var: ContextVar[str] = ContextVar("request_id", default="")
_sweep_id_var: ContextVar[str] = ContextVar("sweep_id", default="")


def set_request_id(rid: str) -> None:
    _request_id_var.set(rid or "")


def clear_request_id() -> None:
    _request_id_var.set("")


@contextmanager
def sweep_scope(sweep_id: str) -> Iterator[str]:
    token = _sweep_id_var.set(sweep_id or "")
    try:
        yield sweep_id
    finally:
        _sweep_id_var.reset(token)


def log_context() -> Dict[str, str]:
    ctx = {"request_id": _request_id_var.get(), "sweep_id": _sweep_id_var.get()}
    return {k: v for k, v in ctx.items() if v}
