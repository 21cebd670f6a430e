"""
tasks/policy.py -- Decision rules for updating a task.

plan_task_update() is a pure function: it receives the task as read from the
store (or None), the acting user and the requested changes, and either raises
a TaskPolicyError or returns a TaskUpdatePlan describing what to write. The
route layer performs the write; nothing here touches the database.

Checks run in a fixed order, and callers rely on it:
  1. task missing                      -> TaskNotFoundError
  2. task owned by someone else        -> TaskForbiddenError
  3. status outside TASK_STATUSES      -> InvalidStatusError
  4. status equal to the current one   -> plan with status_unchanged=True, no changes
  5. otherwise                         -> plan with the supplied fields as changes

Ownership is checked only after existence, so a 403 tells the caller the id
exists. That disclosure is part of the public API contract.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from tasks.models import TASK_STATUSES, Task


class TaskPolicyError(Exception):
    """Base class for refused task updates. code is the machine-readable error code."""

    code = "task_policy_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskNotFoundError(TaskPolicyError):
    code = "task_not_found"


class TaskForbiddenError(TaskPolicyError):
    code = "forbidden"


class InvalidStatusError(TaskPolicyError):
    code = "invalid_status"


@dataclass(frozen=True)
class TaskUpdatePlan:
    """What an accepted update should do.

    changes -- column -> new value; empty means no write is needed.
    status_unchanged -- the caller asked for the status the task already has.
    """

    task: Task
    changes: dict = field(default_factory=dict)
    status_unchanged: bool = False

    @property
    def needs_write(self) -> bool:
        return bool(self.changes)


def plan_task_update(
    task: Optional[Task],
    task_id: int,
    user_id: int,
    title: Optional[str] = None,
    status: Optional[Any] = None,
) -> TaskUpdatePlan:
    """Validate a requested update against the stored task and return the plan.

    title and status are None when the request omitted them (patch semantics).
    status arrives as whatever JSON value the client sent; anything other than
    one of the TASK_STATUSES strings is an InvalidStatusError.
    """
    if task is None:
        raise TaskNotFoundError(f"Task {task_id} not found.")

    if task.user_id != user_id:
        raise TaskForbiddenError("You do not have access to this task.")

    if status is not None and (not isinstance(status, str) or status not in TASK_STATUSES):
        raise InvalidStatusError(f"status must be one of: {', '.join(TASK_STATUSES)}")

    if status is not None and status == task.status:
        return TaskUpdatePlan(task=task, status_unchanged=True)

    changes: dict = {}
    if title is not None:
        changes["title"] = title
    if status is not None:
        changes["status"] = status
    return TaskUpdatePlan(task=task, changes=changes)
