from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from app.deps import get_directory, get_price_source, get_watch_service
from catalog.directory import ItemDirectory
from market.price_source import PriceSource
from models.records import Item
from watches import replies
from watches.errors import TransientFetchFailure
from watches.service import WatchService

router = APIRouter()


def _item_out(item: Optional[Item]) -> Optional[Dict[str, Any]]:
    if item is None:
        return None
    return {"id": item.id, "name": item.name, "short_name": item.short_name, "label": item.label}


@router.get("/help")
def help_text():
    return {"ok": True, "message": replies.HELP_TEXT}


@router.get("/items/suggest")
def suggest_items(
    q: str = Query(default="", max_length=200),
    limit: int = Query(default=25, ge=1, le=25),
    directory: ItemDirectory = Depends(get_directory),
):
    # Autocomplete stays silent on an empty catalog rather than erroring.
    return {"ok": True, "choices": directory.suggest(q, limit=limit)}


@router.get("/items/resolve")
def resolve_item(
    q: str = Query(..., min_length=1, max_length=200),
    service: WatchService = Depends(get_watch_service),
):
    out = service.resolve_or_suggest(q)
    return {"ok": True, "item": _item_out(out["item"]), "suggestions": out["suggestions"]}


@router.get("/items/price")
def price_check(
    q: str = Query(..., min_length=1, max_length=200),
    service: WatchService = Depends(get_watch_service),
    prices: PriceSource = Depends(get_price_source),
):
    item = service.resolve_item(q)
    try:
        quote = prices.fetch_quote(item.id)
    except TransientFetchFailure:
        return {
            "ok": False,
            "error": "price_unavailable",
            "item": _item_out(item),
            "message": "⚠️ Couldn't reach the market right now. Try again in a minute.",
        }
    price = quote.usable_price if quote is not None else 0
    return {"ok": True, "item": _item_out(item), "price": price or None, "message": replies.price_line(item, price)}
