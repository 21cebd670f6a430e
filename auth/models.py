"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors tasks/models.py:
dataclasses own domain shape; stores and routes do the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    email is the login key and is unique across the store. hashed_password
    is a bcrypt hash and must never be serialized into a response.
    id is None before the record is written to the database.
    """

    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The acting user for a request, decoded from a verified bearer token."""

    user_id: int


@dataclass(frozen=True)
class AuthRejection:
    """Why the auth gate refused a request.

    reason is "missing_token" (no usable Authorization header) or
    "invalid_token" (signature, expiry, or claim check failed).
    """

    reason: str
    message: str
