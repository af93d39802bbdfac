from __future__ import annotations

import logging
import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ops.structured_logger import setup_logging
from storage.db_client import init_db
from utils.http_client import close_http_client
from utils.request_context import clear_request_id, set_request_id
from watches.errors import TransientFetchFailure, WatchError

from app.routers.admin import router as admin_router
from app.routers.health import router as health_router
from app.routers.items import router as items_router
from app.routers.watches import router as watches_router

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield
    close_http_client()


app = FastAPI(title="Flea Watch API", version="1.0.0", lifespan=lifespan)
log = logging.getLogger("fleawatch.api")


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or ""


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    set_request_id(rid)
    try:
        response = await call_next(request)
    finally:
        clear_request_id()
    response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(WatchError)
async def watch_error_handler(request: Request, exc: WatchError):
    rid = _get_request_id(request)
    log.info(
        "watch_request_rejected",
        extra={"extra": {"event": "watch_request_rejected", "error": exc.code, "path": request.url.path, "request_id": rid}},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.code, "message": exc.user_message, "request_id": rid},
    )


@app.exception_handler(TransientFetchFailure)
async def upstream_error_handler(request: Request, exc: TransientFetchFailure):
    rid = _get_request_id(request)
    log.warning(
        "upstream_unavailable",
        extra={"extra": {"event": "upstream_unavailable", "message": str(exc), "path": request.url.path, "request_id": rid}},
    )
    return JSONResponse(
        status_code=502,
        content={
            "ok": False,
            "error": "upstream_unavailable",
            "message": "⚠️ The market data source is unavailable right now. Try again later.",
            "request_id": rid,
        },
    )


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


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = _get_request_id(request)
    log.warning(
        "validation_error",
        extra={
            "extra": {
                "event": "validation_error",
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
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
        content={
            "ok": False,
            "error": "internal_unhandled_exception",
            "message": "❌ Something went wrong. Please try again later.",
            "request_id": rid,
        },
    )


app.include_router(health_router, tags=["health"])
app.include_router(items_router, prefix="/api", tags=["items"])
app.include_router(watches_router, prefix="/api", tags=["watches"])
app.include_router(admin_router, prefix="/admin", tags=["admin"])
