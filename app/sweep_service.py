from __future__ import annotations

import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from app.deps import get_catalog_sync, get_sweeper
from catalog.sync_job import CatalogSyncJob
from ops.structured_logger import setup_logging
from security.operator_auth import verify_operator_request
from storage.db_client import init_db
from utils.http_client import close_http_client
from sweep.watch_sweeper import WatchSweeper

setup_logging()

log = logging.getLogger("fleawatch.sweep.service")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    close_http_client()


# Invoked by an external timer (e.g. Cloud Scheduler with an OIDC token); it never schedules itself.
app = FastAPI(title="Flea Watch Sweep", version="1.0.0", lifespan=lifespan)


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or ""


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    response = await call_next(request)
    response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    rid = _get_request_id(request)
    log.warning(
        "http_exception",
        extra={
            "extra": {
                "event": "http_exception",
                "status_code": exc.status_code,
                "detail": exc.detail,
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _get_request_id(request)
    log.error(
        "internal_unhandled_exception",
        extra={
            "extra": {
                "event": "internal_unhandled_exception",
                "error_type": type(exc).__name__,
                "message": str(exc),
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "internal_unhandled_exception", "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


@app.get("/healthz")
def healthz():
    return {"ok": True, "service": "fleawatch-sweep"}


@app.post("/watch_sweep_run")
def watch_sweep_run(request: Request, sweeper: WatchSweeper = Depends(get_sweeper)):
    verify_operator_request(request)
    return sweeper.run()


@app.post("/catalog_sync_run")
def catalog_sync_run(request: Request, replace: bool = False, job: CatalogSyncJob = Depends(get_catalog_sync)):
    verify_operator_request(request)
    return job.run(replace=replace)
