from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.deps import get_catalog_sync, get_watch_service
from catalog.sync_job import CatalogSyncJob
from models.schema import MAX_PRICE
from security.admins import require_admin
from security.operator_auth import OperatorClaims
from watches import replies
from watches.service import WatchService

router = APIRouter()

ID_FIELD = dict(min_length=1, max_length=64)


class WatchCreateRequest(BaseModel):
    scope_id: str = Field(..., **ID_FIELD)
    channel_id: str = Field(..., **ID_FIELD)
    user_id: str = Field(..., **ID_FIELD)
    item: str = Field(..., min_length=1, max_length=200)
    max_price: int = Field(..., ge=1, le=MAX_PRICE)
    once: bool = False


class WatchRemoveRequest(BaseModel):
    scope_id: str = Field(..., **ID_FIELD)
    user_id: str = Field(..., **ID_FIELD)
    item: str = Field(..., min_length=1, max_length=200)


class CatalogSyncRequest(BaseModel):
    user_id: str = Field(..., **ID_FIELD)
    replace: bool = False


@router.post("/watches")
def create_watch(req: WatchCreateRequest, service: WatchService = Depends(get_watch_service)):
    result = service.create_or_update(
        scope_id=req.scope_id,
        channel_id=req.channel_id,
        user_id=req.user_id,
        raw_item=req.item,
        max_price=req.max_price,
        once=req.once,
    )
    return {
        "ok": True,
        "status": result.status,
        "watch": result.watch.to_dict(),
        "message": replies.watch_saved(result.watch, result.created),
    }


@router.get("/watches")
def list_watches(
    scope_id: str = Query(..., **ID_FIELD),
    user_id: str = Query(..., **ID_FIELD),
    service: WatchService = Depends(get_watch_service),
):
    rows = service.list_watches(scope_id, user_id)
    return {"ok": True, "items": [w.to_dict() for w in rows], "message": replies.watch_list(rows)}


@router.post("/watches/remove")
def remove_watch(req: WatchRemoveRequest, service: WatchService = Depends(get_watch_service)):
    deleted = service.remove(req.scope_id, req.user_id, req.item)
    return {"ok": True, "deleted": deleted, "message": replies.watch_removed(req.item, deleted)}


@router.delete("/watches")
def clear_watches(
    scope_id: str = Query(..., **ID_FIELD),
    user_id: str = Query(..., **ID_FIELD),
    service: WatchService = Depends(get_watch_service),
):
    deleted = service.clear(scope_id, user_id)
    return {"ok": True, "deleted": deleted, "message": replies.watches_cleared(deleted)}


@router.post("/catalog/sync")
def sync_catalog(
    req: CatalogSyncRequest,
    claims: dict = OperatorClaims,
    job: CatalogSyncJob = Depends(get_catalog_sync),
):
    # The chat user id comes from the relay, which must itself hold an operator token.
    require_admin(req.user_id)
    result = job.run(replace=req.replace)
    return {**result, "message": replies.catalog_synced(int(result["items"]))}
