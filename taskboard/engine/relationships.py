"""Relationship synchronization between users and tasks.

A user lists the tasks assigned to them and not yet completed in
``pending_tasks``; a task points back at its user through ``assigned_user``
and caches the user's name in ``assigned_user_name``. Handlers perform the
primary write first and then call the matching hook below to repair the
other side.

Repairs are best effort. A referenced document that does not exist is
skipped, and a failing store call is logged and swallowed, because the
primary write has already succeeded. Nothing here is transactional: two
concurrent requests editing the same user's pending tasks can overwrite each
other's change.
"""

import logging
from typing import Callable, List, Optional, Sequence, TypeVar

from taskboard.database.ports import TaskStore, UserStore
from taskboard.models.task import Task
from taskboard.models.user import User

logger = logging.getLogger(__name__)

R = TypeVar('R')


def unique_ids(ids: Sequence[str]) -> List[str]:
    """Deduplicate while preserving order."""
    seen = set()
    unique = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


class RelationshipSynchronizer:
    """Keeps User.pending_tasks and Task.assigned_user mutually consistent."""

    def __init__(self, users: UserStore, tasks: TaskStore):
        self.users = users
        self.tasks = tasks

    def _best_effort(self, action: str, call: Callable[..., R], *args) -> Optional[R]:
        try:
            return call(*args)
        except Exception as e:
            logger.error(f"Failed to {action}: {type(e).__name__}: {str(e)}")
            return None

    # Task side

    def resolve_assignee_name(self, assigned_user: Optional[str], supplied_name: Optional[str]) -> Optional[str]:
        """Name to cache on a task being written.

        Args:
            assigned_user: Target user id (None = unassigned)
            supplied_name: Name sent by the client, None when absent or "unassigned"

        Returns:
            The supplied name when given, otherwise the assigned user's current
            name, or None when unassigned or the user cannot be resolved
        """
        if not assigned_user:
            return None
        if supplied_name:
            return supplied_name
        user = self._best_effort(f"resolve user {assigned_user}", self.users.get, assigned_user)
        return user.name if user else None

    def after_task_created(self, task: Task) -> None:
        if task.is_pending:
            self._add_pending(task.assigned_user, task.id)

    def after_task_updated(self, old: Task, new: Task) -> None:
        """Move the task between pendingTasks lists after an update.

        The task leaves its old user's list when it was reassigned or has just
        been completed. It joins the new user's list when it is pending and
        was reassigned, just left the old list, or was reopened.
        """
        target_changed = old.assigned_user != new.assigned_user
        removed = False
        if old.assigned_user and (target_changed or (new.completed and not old.completed)):
            self._remove_pending(old.assigned_user, new.id)
            removed = True
        if new.is_pending and (target_changed or removed or old.completed):
            self._add_pending(new.assigned_user, new.id)

    def before_task_deleted(self, task: Task) -> None:
        if task.assigned_user:
            self._remove_pending(task.assigned_user, task.id)

    # User side

    def after_user_created(self, user: User) -> None:
        for task_id in unique_ids(user.pending_tasks):
            self._assign_task(task_id, user)

    def after_user_updated(self, old: User, new: User) -> None:
        """Apply the pendingTasks diff and propagate a rename.

        Tasks dropped from the list are unassigned, tasks added are pointed at
        the user. A name change is copied to every task assigned to the user,
        completed ones included.
        """
        removed = [task_id for task_id in unique_ids(old.pending_tasks) if task_id not in new.pending_tasks]
        added = [task_id for task_id in unique_ids(new.pending_tasks) if task_id not in old.pending_tasks]
        for task_id in removed:
            self._unassign_task(task_id)
        for task_id in added:
            self._assign_task(task_id, new)
        if old.name != new.name:
            self._best_effort(
                f"rename assignee {new.id} on tasks",
                self.tasks.rename_assignee,
                new.id,
                new.name,
            )

    def before_user_deleted(self, user: User) -> None:
        """Unassign the user's tasks before the user document goes away.

        Completed tasks still pointing at the user are unassigned as well so
        no task keeps a dangling assignee.
        """
        for task_id in unique_ids(user.pending_tasks):
            self._unassign_task(task_id)
        self._best_effort(f"unassign remaining tasks of user {user.id}", self.tasks.unassign_all, user.id)

    # Single-document repairs

    def _add_pending(self, user_id: str, task_id: str) -> None:
        user = self._best_effort(f"load user {user_id}", self.users.get, user_id)
        if user is None or task_id in user.pending_tasks:
            return
        updated = user.model_copy(update={"pending_tasks": user.pending_tasks + [task_id]})
        if self._best_effort(f"add task {task_id} to user {user_id}", self.users.update, updated):
            logger.debug(f"Added pending task {task_id} to user {user_id}")

    def _remove_pending(self, user_id: str, task_id: str) -> None:
        user = self._best_effort(f"load user {user_id}", self.users.get, user_id)
        if user is None or task_id not in user.pending_tasks:
            return
        remaining = [pending for pending in user.pending_tasks if pending != task_id]
        updated = user.model_copy(update={"pending_tasks": remaining})
        if self._best_effort(f"remove task {task_id} from user {user_id}", self.users.update, updated):
            logger.debug(f"Removed pending task {task_id} from user {user_id}")

    def _assign_task(self, task_id: str, user: User) -> None:
        task = self._best_effort(f"load task {task_id}", self.tasks.get, task_id)
        if task is None:
            return
        previous = task.assigned_user
        if previous and previous != user.id:
            self._remove_pending(previous, task_id)
        updated = task.model_copy(update={"assigned_user": user.id, "assigned_user_name": user.name})
        if self._best_effort(f"assign task {task_id} to user {user.id}", self.tasks.update, updated):
            logger.debug(f"Assigned task {task_id} to user {user.id}")

    def _unassign_task(self, task_id: str) -> None:
        task = self._best_effort(f"load task {task_id}", self.tasks.get, task_id)
        if task is None:
            return
        updated = task.model_copy(update={"assigned_user": None, "assigned_user_name": None})
        if self._best_effort(f"unassign task {task_id}", self.tasks.update, updated):
            logger.debug(f"Unassigned task {task_id}")
