from __future__ import annotations

from typing import Optional

from config.settings import settings
from messaging.discord import Message
from models.records import Watch


def format_amount(value: int, currency: str = "") -> str:
    amount = f"{int(value):,}"
    return f"{amount} {currency}" if currency else amount


def format_price_alert(watch: Watch, price: int, currency: Optional[str] = None) -> Message:
    cur = settings.CURRENCY_SYMBOL if currency is None else currency
    now_txt = format_amount(price, cur)
    target_txt = format_amount(watch.max_price, cur)

    text = f"🚨 <@{watch.user_id}> **{watch.item_name}** is now **{now_txt}** (≤ {target_txt})"
    lines = [
        f"Price: {now_txt}",
        f"Your target: ≤ {target_txt}",
    ]
    if watch.once:
        lines.append("This was a one-time watch and has been removed.")
    return Message(text=text, title=f"Price alert: {watch.item_name}", lines=lines)
