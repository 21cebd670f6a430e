"""
api/routes/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /register  -- create an account; 200 with the user (no password hash)
  POST /login     -- email/password login; 200 with a bearer token
  GET  /me        -- identity behind the presented token (requires auth)

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Wrong password and unknown email return the same 401 bad_credentials.
  Cache-Control: no-store on login responses.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.models import ErrorDetail, LoginRequest, LoginResponse, MeResponse, RegisterRequest, UserResponse
from auth.dependencies import get_current_identity
from auth.models import Identity, User
from auth.store import UserStore
from auth.tokens import authenticate_user, create_access_token, hash_password
from core.config import Settings

logger = logging.getLogger("taskboard.api.auth")

# Auth policy:
# - POST /register: public
# - POST /login:    public
# - GET  /me:       requires auth (get_current_identity)
router = APIRouter()


@router.post("/register", response_model=UserResponse)
def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create a new account and return it without the password hash.

    Email uniqueness is enforced by the store. A duplicate insert raises
    IntegrityError, which becomes 409 rather than a 500.
    """
    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store

    new_user = User(email=body.email, hashed_password=hash_password(body.password, settings.bcrypt_rounds))
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail=ErrorDetail(
                code="email_taken",
                message="An account with that email already exists.",
            ).model_dump(),
        ) from exc

    created = user_store.get_by_id(user_id)
    if created is None:
        raise HTTPException(
            status_code=500,
            detail=ErrorDetail(code="internal_error", message="User not found after write.").model_dump(),
        )
    logger.info("Registered user %d", user_id)
    return UserResponse.from_user(created)


@router.post("/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a signed bearer token."""
    settings: Settings = request.app.state.settings
    user_store: UserStore = request.app.state.user_store

    user = authenticate_user(user_store, body.email, body.password, settings)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = create_access_token(user.id, settings)
    logger.info("Login: user %d", user.id)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=token,
            token_type="bearer",  # noqa: S106 -- OAuth token type, not a password
            expires_in=settings.token_expire_seconds,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/me", response_model=MeResponse)
def me(request: Request, identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return the account behind the presented bearer token.

    A validly signed token for a user id the store does not know is treated
    as unauthenticated.
    """
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(identity.user_id)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return MeResponse(id=user.id, email=user.email)
