"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with Settings.jwt_secret and
       carry sub (user id as string), user_id, iat and an explicit exp taken
       from Settings.token_expire_seconds. Verification returns None on any
       failure -- the auth gate turns that into a 401.

  Passwords: bcrypt used directly with a configurable work factor
       (Settings.bcrypt_rounds, default 10). authenticate_user() runs bcrypt
       against a dummy hash for unknown emails so response time does not
       reveal whether an account exists.

  Settings are passed in by the caller (read from app.state.settings). This
  module holds no secret at import time.

Layer rule: no imports from api/ or tasks/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("taskboard.auth")

ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes of a password; bcrypt>=4.1 raises
# on longer inputs instead of truncating. Truncate explicitly in both hash
# and verify so long passwords keep working and stay consistent.
_BCRYPT_MAX_BYTES = 72


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def _password_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int) -> str:
    """Return a salted bcrypt hash of the plaintext password at the given cost."""
    return bcrypt.hashpw(_password_bytes(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash.
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    # One per work factor so an unknown email costs the same as a wrong password.
    return hash_password("taskboard_timing_dummy", rounds)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user_id: int, settings: Settings) -> str:
    """Encode a signed JWT for user_id that expires after settings.token_expire_seconds."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "user_id": user_id,
        "iat": now,
        "exp": now + timedelta(seconds=settings.token_expire_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Expired, malformed, wrongly signed and claim-less tokens all map to None.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        return None
    if not isinstance(payload.get("user_id"), int):
        return None
    return payload


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str, settings: Settings) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against a dummy hash of the same cost
    - Wrong password: bcrypt runs against the real hash

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        verify_password(password, _dummy_hash(settings.bcrypt_rounds))
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user
