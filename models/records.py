from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Item:
    id: str
    name: str
    name_key: str
    short_name: str = ""

    @property
    def label(self) -> str:
        # Display label used for suggestions: "Name (SHORT)" when a short name exists.
        return f"{self.name} ({self.short_name})" if self.short_name else self.name

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Item":
        return cls(
            id=str(row["id"]),
            name=row["name"],
            name_key=row["name_key"],
            short_name=row.get("short_name") or "",
        )


@dataclass(frozen=True)
class Watch:
    id: int
    scope_id: str
    channel_id: str
    user_id: str
    item_id: Optional[str]
    item_name: str
    item_key: str
    max_price: int
    once: bool
    created_at: int
    cooldown_until: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Watch":
        return cls(
            id=int(row["id"]),
            scope_id=row["scope_id"],
            channel_id=row["channel_id"],
            user_id=row["user_id"],
            item_id=row.get("item_id") or None,
            item_name=row["item_name"],
            item_key=row["item_key"],
            max_price=int(row["max_price"]),
            once=bool(row["once"]),
            created_at=int(row["created_at"] or 0),
            cooldown_until=int(row["cooldown_until"] or 0),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "scope_id": self.scope_id,
            "channel_id": self.channel_id,
            "user_id": self.user_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "item_key": self.item_key,
            "max_price": self.max_price,
            "once": self.once,
            "created_at": self.created_at,
            "cooldown_until": self.cooldown_until,
        }
