"""
api/routes/tasks.py -- Task routes for the Taskboard REST API.

Routes:
  GET  /tasks            -- list the caller's tasks, oldest first
  POST /tasks            -- create a task owned by the caller (status Todo)
  PUT  /tasks/{task_id}  -- partial update of title and/or status

Every route requires a bearer token. The decision logic for PUT lives in
tasks/policy.py; TaskPolicyError subclasses raised there are mapped to HTTP
status codes by the exception handler in api/main.py.
"""

from __future__ import annotations

import logging
from typing import Union

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import ErrorDetail, TaskCreate, TaskResponse, TaskStatusUnchangedResponse, TaskUpdate
from auth.dependencies import get_current_identity
from auth.models import Identity
from tasks.models import Task
from tasks.policy import plan_task_update
from tasks.store import TaskStore

logger = logging.getLogger("taskboard.api.tasks")

# Router-level dependency: every task route runs the auth gate first.
# Handlers that need the identity declare it again; FastAPI caches the result.
router = APIRouter(dependencies=[Depends(get_current_identity)])


@router.get("/tasks", response_model=list[TaskResponse])
def list_tasks(request: Request, identity: Identity = Depends(get_current_identity)) -> list[TaskResponse]:
    """Return every task owned by the caller. An empty list is a normal result."""
    task_store: TaskStore = request.app.state.task_store
    return [TaskResponse.from_task(t) for t in task_store.list_tasks_for_user(identity.user_id)]


@router.post("/tasks", response_model=TaskResponse)
def create_task(
    request: Request,
    body: TaskCreate,
    identity: Identity = Depends(get_current_identity),
) -> TaskResponse:
    """Create a task for the caller. New tasks always start as Todo."""
    task_store: TaskStore = request.app.state.task_store
    task_id = task_store.create_task(Task(title=body.title, user_id=identity.user_id))
    created = task_store.get_task(task_id)
    if created is None:
        raise HTTPException(
            status_code=500,
            detail=ErrorDetail(code="internal_error", message="Task not found after write.").model_dump(),
        )
    logger.info("User %d created task %d", identity.user_id, task_id)
    return TaskResponse.from_task(created)


@router.put("/tasks/{task_id}", response_model=Union[TaskResponse, TaskStatusUnchangedResponse])
def update_task(
    request: Request,
    task_id: int,
    body: TaskUpdate,
    identity: Identity = Depends(get_current_identity),
) -> Union[TaskResponse, TaskStatusUnchangedResponse]:
    """Apply a partial update to one of the caller's tasks.

    Returns the updated task, or {message, task} when the requested status
    is already the current one. A request with neither title nor status
    returns the task unchanged without writing.
    """
    task_store: TaskStore = request.app.state.task_store

    task = task_store.get_task(task_id)
    plan = plan_task_update(task, task_id, identity.user_id, title=body.title, status=body.status)

    if plan.status_unchanged:
        return TaskStatusUnchangedResponse(message="Status already current.", task=TaskResponse.from_task(plan.task))
    if not plan.needs_write:
        return TaskResponse.from_task(plan.task)

    # Conditional on the status read above; a concurrent change makes this a no-op.
    if not task_store.update_task(task_id, expected_status=plan.task.status, **plan.changes):
        raise HTTPException(
            status_code=409,
            detail=ErrorDetail(
                code="concurrent_update",
                message="The task was changed by another request. Re-read it and retry.",
            ).model_dump(),
        )

    updated = task_store.get_task(task_id)
    logger.info("User %d updated task %d (%s)", identity.user_id, task_id, ", ".join(sorted(plan.changes)))
    return TaskResponse.from_task(updated)
