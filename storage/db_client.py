from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import Table, create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine

from config.settings import settings
from models.schema import metadata


@lru_cache()
def _engine_for(url: str) -> Engine:
    kwargs: Dict[str, Any] = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Request handlers and the sweep may share a file-backed database across threads.
        kwargs["connect_args"] = {"check_same_thread": False}
    elif url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return create_engine(url, **kwargs)


def get_engine(url: Optional[str] = None) -> Engine:
    return _engine_for(url or settings.DATABASE_URL)


def init_db(engine: Optional[Engine] = None) -> None:
    metadata.create_all(engine or get_engine())


def upsert_statement(engine: Engine, table: Table, index_elements: Sequence[str], update_columns: Sequence[str]):
    """INSERT ... ON CONFLICT DO UPDATE for the dialects we deploy on (SQLite, PostgreSQL)."""
    name = engine.dialect.name
    if name == "sqlite":
        stmt = sqlite.insert(table)
    elif name == "postgresql":
        stmt = postgresql.insert(table)
    else:
        raise RuntimeError(f"unsupported_dialect:{name}")
    return stmt.on_conflict_do_update(
        index_elements=list(index_elements),
        set_={c: stmt.excluded[c] for c in update_columns},
    )
