"""Task endpoints: /api/tasks."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from taskboard.api.deps import get_synchronizer, get_task_repository
from taskboard.api.responses import bad_request, envelope, not_found, ok, server_error
from taskboard.database.repository import TaskRepository
from taskboard.engine.relationships import RelationshipSynchronizer
from taskboard.models.constants import DEFAULT_TASK_LIMIT
from taskboard.models.factory import new_task
from taskboard.models.task import Task, TaskPayload
from taskboard.query.fields import TASK_FIELDS
from taskboard.query.params import interpret_query_params, parse_select_param

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS_MESSAGE = "Task must have a name and deadline"


def _load_task(tasks: TaskRepository, task_id: str) -> Task:
    try:
        task = tasks.get(task_id)
    except Exception as e:
        raise server_error("Error retrieving task", e)
    if task is None:
        raise not_found("Task")
    return task


def _validated(payload: Optional[TaskPayload]) -> TaskPayload:
    payload = payload or TaskPayload()
    if not payload.name or not payload.deadline:
        raise bad_request(REQUIRED_FIELDS_MESSAGE)
    return payload


@router.get("")
def list_tasks(request: Request, tasks: TaskRepository = Depends(get_task_repository)):
    """List tasks filtered by where/filter, sort, select, skip, limit, count."""
    query = interpret_query_params(request.query_params, TASK_FIELDS, DEFAULT_TASK_LIMIT)
    if query.count_only:
        try:
            return ok(tasks.count(query))
        except Exception as e:
            raise server_error("Error counting tasks", e)
    try:
        found = tasks.find(query)
    except Exception as e:
        raise server_error("Error retrieving tasks", e)
    return ok([query.project(task.to_document()) for task in found])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    payload: Optional[TaskPayload] = None,
    tasks: TaskRepository = Depends(get_task_repository),
    sync: RelationshipSynchronizer = Depends(get_synchronizer),
):
    """Create a task and add it to its assignee's pendingTasks."""
    payload = _validated(payload)
    assignee = payload.assignee()
    task = new_task(
        name=payload.name,
        deadline=payload.deadline,
        description=payload.description or "",
        completed=payload.is_completed(),
        assigned_user=assignee,
        assigned_user_name=sync.resolve_assignee_name(assignee, payload.assignee_name()),
    )
    try:
        saved = tasks.create(task)
    except Exception as e:
        raise server_error("Error creating task", e)

    sync.after_task_created(saved)
    logger.info(f"Created task {saved.id}")
    return envelope("Task created successfully", saved.to_document())


@router.get("/{task_id}")
def get_task(task_id: str, request: Request, tasks: TaskRepository = Depends(get_task_repository)):
    projection = parse_select_param(request.query_params)
    task = _load_task(tasks, task_id)
    doc = task.to_document()
    return ok(projection.apply(doc) if projection else doc)


@router.put("/{task_id}")
def replace_task(
    task_id: str,
    payload: Optional[TaskPayload] = None,
    tasks: TaskRepository = Depends(get_task_repository),
    sync: RelationshipSynchronizer = Depends(get_synchronizer),
):
    """Replace the mutable fields of a task.

    Omitted optional fields fall back to their defaults: an empty
    description, not completed, unassigned.
    """
    payload = _validated(payload)
    existing = _load_task(tasks, task_id)
    assignee = payload.assignee()
    replacement = existing.model_copy(update={
        "name": payload.name,
        "description": payload.description or "",
        "deadline": payload.deadline,
        "completed": payload.is_completed(),
        "assigned_user": assignee,
        "assigned_user_name": sync.resolve_assignee_name(assignee, payload.assignee_name()),
    })
    try:
        saved = tasks.update(replacement)
    except Exception as e:
        raise server_error("Error updating task", e)

    sync.after_task_updated(existing, saved)
    return envelope("Task updated successfully", saved.to_document())


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    tasks: TaskRepository = Depends(get_task_repository),
    sync: RelationshipSynchronizer = Depends(get_synchronizer),
):
    """Remove the task from its assignee's pendingTasks, then delete it."""
    task = _load_task(tasks, task_id)
    sync.before_task_deleted(task)
    try:
        tasks.delete(task_id)
    except Exception as e:
        raise server_error("Error deleting task", e)
    logger.info(f"Deleted task {task_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
