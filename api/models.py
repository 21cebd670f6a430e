"""
API request and response models for Taskboard REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Request bodies are deliberately loose: the only value checked against an
allow-list is a task status, and that check happens in tasks/policy.py so it
runs after the existence and ownership checks.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from auth.models import User
from tasks.models import STATUS_DONE, STATUS_IN_PROGRESS, STATUS_TODO, Task

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TaskStatusEnum(str, Enum):
    todo = STATUS_TODO
    in_progress = STATUS_IN_PROGRESS
    done = STATUS_DONE


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    email: str
    password: str


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: str
    password: str


class TaskCreate(BaseModel):
    """Request body for POST /tasks.

    Unknown fields (including "status") are ignored; new tasks always start as Todo.
    """

    title: str


class TaskUpdate(BaseModel):
    """Request body for PUT /tasks/{task_id}. Omitted fields stay unchanged.

    status accepts any JSON value so that every bad value, strings or not,
    reaches the task policy after the existence and ownership checks and is
    reported as 400 invalid_status, not as a 422 body validation error.
    """

    title: Optional[str] = None
    status: Optional[Any] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. The password hash has no field here on purpose."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, created_at=user.created_at or "")


class MeResponse(BaseModel):
    """Response for GET /me."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str


class LoginResponse(BaseModel):
    """Response for POST /login."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int


class TaskResponse(BaseModel):
    """One task as returned by every task endpoint."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    status: TaskStatusEnum
    user_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Build a TaskResponse from a domain Task."""
        return cls(
            id=task.id,
            title=task.title,
            status=TaskStatusEnum(task.status),
            user_id=task.user_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskStatusUnchangedResponse(BaseModel):
    """Response for PUT /tasks/{task_id} when the requested status is already set."""

    model_config = ConfigDict(frozen=True)

    message: str
    task: TaskResponse


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str
    version: str
    components: dict[str, str]
