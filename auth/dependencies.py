"""
auth/dependencies.py -- The auth gate and its FastAPI Depends() wrapper.

check_bearer() is the gate itself: given the raw Authorization header value
and the settings, it returns either an Identity or an AuthRejection. It never
raises and never touches request state, so it is trivially unit-testable.

get_current_identity() composes the gate in front of a protected route:
it reads the header and settings from the request, runs check_bearer(), and
raises HTTP 401 on rejection.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, Request

from auth.models import AuthRejection, Identity
from auth.tokens import decode_access_token

if TYPE_CHECKING:
    from core.config import Settings


def check_bearer(authorization: str | None, settings: Settings) -> Identity | AuthRejection:
    """Verify an `Authorization: Bearer <token>` header value.

    The scheme is matched case-insensitively. Anything other than a bearer
    scheme followed by a non-empty token counts as a missing credential.
    """
    scheme, _, token = (authorization or "").strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return AuthRejection(reason="missing_token", message="Authentication required.")

    payload = decode_access_token(token, settings)
    if payload is None:
        return AuthRejection(reason="invalid_token", message="Invalid or expired token.")
    return Identity(user_id=payload["user_id"])


def get_current_identity(request: Request) -> Identity:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(identity: Identity = Depends(get_current_identity)): ...
    """
    result = check_bearer(request.headers.get("Authorization"), request.app.state.settings)
    if isinstance(result, AuthRejection):
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": result.message, "detail": result.reason},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return result
