from __future__ import annotations

import logging
from typing import Any, Dict, Set

from fastapi import Depends, HTTPException, Request
from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from config.settings import settings

log = logging.getLogger("fleawatch.operator_auth")


def split_csv(v: str) -> Set[str]:
    return {x.strip() for x in (v or "").split(",") if x.strip()}


def _bearer_token(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if not auth.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="missing_bearer_token")
    token = auth.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="missing_bearer_token")
    return token


def check_invoker(claims: Dict[str, Any]) -> None:
    """Match verified token claims against the configured invoker allow-lists.

    With no allow-list configured every caller holding a valid token for the
    audience is rejected.
    """
    allowed_subs = split_csv(settings.OPERATOR_INVOKER_SUBS)
    allowed_emails = split_csv(settings.OPERATOR_INVOKER_EMAILS)
    if not allowed_subs and not allowed_emails:
        raise HTTPException(status_code=403, detail="operator_allow_list_empty")

    sub = str(claims.get("sub") or "")
    email = str(claims.get("email") or "")
    if sub and sub in allowed_subs:
        return
    if email and claims.get("email_verified", True) and email in allowed_emails:
        return
    log.warning("operator_not_allowed", extra={"extra": {"sub_hint": sub[-4:], "has_email": bool(email)}})
    raise HTTPException(status_code=403, detail="operator_not_allowed")


def verify_operator_request(request: Request) -> dict:
    """Verify the Google OIDC bearer token sent by the scheduler or an operator."""
    token = _bearer_token(request)
    audience = settings.OPERATOR_AUTH_AUDIENCE
    if not audience:
        raise HTTPException(status_code=500, detail="operator_auth_audience_not_configured")

    try:
        claims = id_token.verify_oauth2_token(token, google_requests.Request(), audience=audience)
    except (ValueError, google_exceptions.GoogleAuthError) as e:
        log.warning("operator_token_rejected", extra={"extra": {"error": str(e)}})
        raise HTTPException(status_code=401, detail="invalid_operator_token")

    check_invoker(claims)
    return claims


def require_operator_auth(request: Request) -> dict:
    return verify_operator_request(request)


OperatorClaims = Depends(require_operator_auth)
