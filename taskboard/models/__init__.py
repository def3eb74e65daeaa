"""Data models for taskboard."""

from taskboard.models.user import User, UserPayload
from taskboard.models.task import Task, TaskPayload
from taskboard.models.factory import new_id, new_user, new_task

__all__ = [
    "User",
    "UserPayload",
    "Task",
    "TaskPayload",
    "new_id",
    "new_user",
    "new_task",
]
