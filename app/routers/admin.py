from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from alerts.dispatch import AlertDispatcher
from app.deps import get_alert_dispatcher, get_catalog_sync, get_sweeper, get_watch_service
from catalog.sync_job import CatalogSyncJob
from security.operator_auth import OperatorClaims, verify_operator_request
from sweep.watch_sweeper import WatchSweeper
from watches.service import WatchService

router = APIRouter()
log = logging.getLogger("fleawatch.routers.admin")


class TestAlertRequest(BaseModel):
    scope_id: str = Field(..., min_length=1, max_length=64)
    user_id: str = Field(..., min_length=1, max_length=64)
    price: int = Field(default=1, ge=1)


@router.get("/whoami")
def whoami(request: Request):
    claims = verify_operator_request(request)
    return {"ok": True, "claims": {"sub": claims.get("sub"), "email": claims.get("email"), "aud": claims.get("aud")}}


@router.post("/run_sweep_now")
def run_sweep_now(request: Request, sweeper: WatchSweeper = Depends(get_sweeper)):
    verify_operator_request(request)
    return sweeper.run()


@router.post("/catalog_sync_run")
def catalog_sync_run(request: Request, replace: bool = False, job: CatalogSyncJob = Depends(get_catalog_sync)):
    verify_operator_request(request)
    return job.run(replace=replace)


@router.post("/test_alert")
def test_alert(
    request: Request,
    body: TestAlertRequest,
    claims: dict = OperatorClaims,
    service: WatchService = Depends(get_watch_service),
    alerts: AlertDispatcher = Depends(get_alert_dispatcher),
):
    """
    Forced price alert for the user's most recent watch.
    - Operator auth required (OIDC)
    - Sends through the same formatter/dispatcher path as the sweep
    - Does not touch cooldown or once state
    """
    verify_operator_request(request)

    rows = service.list_watches(body.scope_id, body.user_id, limit=1)
    if not rows:
        raise HTTPException(status_code=404, detail="watch_not_found")

    watch = rows[0]
    resp = alerts.dispatch_price_alert(watch, body.price, sweep_id="admin_test_alert")

    log.info(
        "admin_test_alert_sent",
        extra={
            "extra": {
                "watch_id": watch.id,
                "user_id": body.user_id,
                "discord_ok": bool(resp.get("ok", False)),
                "operator_sub": claims.get("sub") if isinstance(claims, dict) else None,
            }
        },
    )
    return {"ok": True, "watch_id": watch.id, "discord_response_ok": bool(resp.get("ok", False))}
