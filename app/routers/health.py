from __future__ import annotations

import os
import time
from typing import Any, Dict

from fastapi import APIRouter
from sqlalchemy import text

from config.settings import settings
from repos.item_repo import ItemRepository
from repos.meta_repo import MetaRepository
from storage.db_client import get_engine

router = APIRouter()


def _db_probe() -> Dict[str, Any]:
    """
    Read-only database connectivity probe.
    - No writes
    - Reports catalog freshness alongside connectivity
    """
    try:
        t0 = time.time()
        engine = get_engine()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        state = MetaRepository(engine).get_catalog_state()
        state["item_rows"] = ItemRepository(engine).count()
        dt_ms = int((time.time() - t0) * 1000)
        return {"ok": True, "latency_ms": dt_ms, **state}
    except Exception as e:
        return {"ok": False, "error_type": type(e).__name__, "message": str(e)}


@router.get("/health")
def health():
    rev = os.getenv("K_REVISION") or ""
    svc = os.getenv("K_SERVICE") or "fleawatch-api"

    db = _db_probe()

    payload: Dict[str, Any] = {
        "ok": bool(db.get("ok", False)),
        "service": "fleawatch-api",
        "cloudrun_service": svc,
        "revision": rev,
        "environment": settings.ENVIRONMENT,
        "db_ok": bool(db.get("ok", False)),
        "catalog_items": int(db.get("items_count", 0) or 0),
        "catalog_last_sync_ms": int(db.get("items_last_sync_ms", 0) or 0),
        "catalog_rows": int(db.get("item_rows", 0) or 0),
        "time_unix": time.time(),
    }
    return payload
