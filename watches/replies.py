from __future__ import annotations

from typing import List, Optional

from alerts.formatter import format_amount
from config.settings import settings
from models.records import Item, Watch

HELP_TEXT = (
    "🧠 **Flea Watch Bot**\n"
    "• `/watch item max_price [once]` — watch a flea price\n"
    "• `/listwatches` — show your watches\n"
    "• `/unwatch item` — remove a watch\n"
    "• `/clearwatches` — remove all your watches\n"
    "• `/price item` — check the current price\n"
    "• `/syncitems` — (admin) refresh local item dictionary\n"
)


def _once_suffix(once: bool) -> str:
    return " (once)" if once else ""


def watch_saved(watch: Watch, created: bool) -> str:
    target = format_amount(watch.max_price, settings.CURRENCY_SYMBOL)
    if created:
        return f"✅ Watching **{watch.item_name}** at **≤ {target}**{_once_suffix(watch.once)}"
    return f"♻️ Updated: **{watch.item_name}** ≤ **{target}**{_once_suffix(watch.once)}"


def watch_list(rows: List[Watch]) -> str:
    if not rows:
        return "📌 **Your watches**\nNo watches yet. Add one with `/watch`."
    lines = [
        f"• {w.item_name} ≤ {format_amount(w.max_price, settings.CURRENCY_SYMBOL)}{_once_suffix(w.once)}"
        for w in rows
    ]
    return "📌 **Your watches**\n" + "\n".join(lines)


def watch_removed(raw_item: str, deleted: int) -> str:
    if not deleted:
        return f"ℹ️ No watch found for **{raw_item}**."
    if deleted == 1:
        return f"🧹 Removed watch for **{raw_item}**."
    return f"🧹 Removed {deleted} watches matching **{raw_item}**."


def watches_cleared(deleted: int) -> str:
    return f"🧹 Cleared {deleted} watch(es)." if deleted else "ℹ️ You have no watches to clear."


def price_line(item: Item, price: Optional[int]) -> str:
    if not price:
        return f"ℹ️ No usable market price for **{item.name}** right now."
    return f"💰 **{item.name}** is currently **{format_amount(price, settings.CURRENCY_SYMBOL)}**"


def catalog_synced(count: int) -> str:
    return f"✅ Synced **{count:,}** items into the dictionary."
