# Centralized table definitions to prevent drift.
# All timestamps are integer epoch milliseconds; 0 means "never".

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

items = Table(
    "items",
    metadata,
    Column("id", String(128), primary_key=True),
    Column("name", Text, nullable=False),
    Column("short_name", Text, nullable=False, default=""),
    Column("name_key", Text, nullable=False),
    Index("ix_items_name_key", "name_key"),
)

watches = Table(
    "watches",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("scope_id", String(64), nullable=False),
    Column("channel_id", String(64), nullable=False),
    Column("user_id", String(64), nullable=False),
    Column("item_id", String(128), nullable=True),
    Column("item_name", Text, nullable=False),
    Column("item_key", Text, nullable=False),
    Column("max_price", BigInteger, nullable=False),
    Column("once", Boolean, nullable=False, default=False),
    Column("created_at", BigInteger, nullable=False),
    Column("cooldown_until", BigInteger, nullable=False, default=0),
    UniqueConstraint("scope_id", "user_id", "item_key", name="uq_watches_scope_user_item"),
    Index("ix_watches_scope_user", "scope_id", "user_id"),
)

meta = Table(
    "meta",
    metadata,
    Column("key", String(64), primary_key=True),
    Column("value", Text, nullable=False),
)

# meta keys
META_ITEMS_LAST_SYNC_MS = "items_last_sync_ms"
META_ITEMS_COUNT = "items_count"

# Largest threshold a signed 64-bit max_price column holds.
MAX_PRICE = 2**63 - 1
