"""
Caller identity for the OSHA Logbook API.

The identity provider is external: it issues a signed JWT whose ``sub`` claim
is an opaque, stable user id. Requests present it either as
``Authorization: Bearer <token>`` (API clients, CLI) or as the
``logbook_session`` cookie (browser). A request without a valid token simply
has no identity; every store operation turns that into an authorization
failure.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request, Response
from fastapi.security import APIKeyHeader

from logbook_api.core.config import get_settings
from logbook_api.core.errors import AuthorizationError
from logbook_api.core.telemetry import add_breadcrumb, capture_exception

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "logbook_session"
CSRF_COOKIE = "logbook_csrf"

bearer_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(user_id: str, *, expires_delta: timedelta | None = None) -> str:
    """Create a signed identity token for ``user_id`` (dev tooling and tests)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


def set_csrf_cookie(response: Response, token: str) -> None:
    """Issue the double-submit cookie that browser sessions echo in X-CSRF-Token."""
    response.set_cookie(
        key=CSRF_COOKIE,
        value=token,
        httponly=False,  # JS must read this
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def _extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


async def get_caller_identity(
    request: Request,
    authorization: Optional[str] = Depends(bearer_header),
) -> Optional[str]:
    """Resolve the caller's user id, or None when unauthenticated.

    Token errors never fail the request here; they degrade to "no identity"
    and the operation itself decides what an anonymous caller may do.
    """
    token = _extract_token(request, authorization)
    if not token:
        return None

    try:
        payload = decode_jwt(token)
    except jwt.ExpiredSignatureError:
        log.info("auth.token_expired")
        return None
    except jwt.PyJWTError as exc:
        capture_exception(exc, tags={"component": "auth"})
        log.warning("auth.token_invalid", error=str(exc))
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    structlog.contextvars.bind_contextvars(user_id=user_id)
    return str(user_id)


def require_identity(user_id: Optional[str]) -> str:
    """Return the caller identity or raise AuthorizationError."""
    if not user_id:
        add_breadcrumb("auth", "Unauthorized access attempt", level="warning")
        raise AuthorizationError()
    return user_id
