"""
tasks/models.py -- Domain dataclass and status vocabulary for tasks.

Pure data container with zero logic. The rules for changing a task live in
tasks/policy.py; persistence lives in tasks/store.py.
"""

from dataclasses import dataclass
from typing import Optional

STATUS_TODO = "Todo"
STATUS_IN_PROGRESS = "In Progress"
STATUS_DONE = "Done"

# The status allow-list. Order is the natural workflow order.
TASK_STATUSES: tuple[str, ...] = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_DONE)


@dataclass
class Task:
    """A unit of work owned by exactly one user.

    user_id is set at creation and never reassigned.
    id is None before the record is written to the database.
    """

    title: str
    user_id: int
    status: str = STATUS_TODO  # "Todo" | "In Progress" | "Done"
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, bumped by store on every write
