"""Repository layer for task database operations."""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from taskboard.models.task import Task
from taskboard.database.models import TaskDB
from taskboard.database.query_sql import apply_query
from taskboard.query.builder import Query

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""
    
    def __init__(self, db: Session):
        self.db = db

    def _get_db(self, task_id: str) -> Optional[TaskDB]:
        return self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
    
    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.name[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise
    
    def get(self, task_id: str) -> Optional[Task]:
        """Get task by ID."""
        task_db = self._get_db(task_id)
        return task_db.to_pydantic() if task_db else None

    def find(self, query: Query) -> List[Task]:
        """Get tasks matching a query, sorted and paginated."""
        tasks_db = apply_query(self.db.query(TaskDB), TaskDB, query).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def count(self, query: Query) -> int:
        """Count tasks matching a query after skip/limit are applied."""
        return apply_query(self.db.query(TaskDB), TaskDB, query).count()

    def update(self, task: Task) -> Task:
        """Update an existing task (full replace of the mutable fields)."""
        task_db = self._get_db(task.id)
        if not task_db:
            raise ValueError(f"Task {task.id} not found")
        
        task_db.name = task.name
        task_db.description = task.description
        task_db.deadline = task.deadline
        task_db.completed = task.completed
        task_db.assigned_user = task.assigned_user
        task_db.assigned_user_name = task.assigned_user_name
        
        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task.id}: {task.name[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task.id}: {type(e).__name__}: {str(e)}")
            raise
    
    def delete(self, task_id: str) -> bool:
        """Delete a task by ID."""
        task_db = self._get_db(task_id)
        if not task_db:
            return False
        
        try:
            self.db.delete(task_db)
            self.db.commit()
            logger.debug(f"Deleted task {task_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def _bulk_update(self, user_id: str, values: dict, action: str) -> int:
        try:
            affected = (
                self.db.query(TaskDB)
                .filter(TaskDB.assigned_user == user_id)
                .update(values, synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"{action}: {affected} tasks of user {user_id}")
            return int(affected)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to {action.lower()} tasks of user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def rename_assignee(self, user_id: str, name: str) -> int:
        """Set assignedUserName on every task assigned to a user."""
        return self._bulk_update(user_id, {TaskDB.assigned_user_name: name}, "Renamed assignee")

    def unassign_all(self, user_id: str) -> int:
        """Unassign every task assigned to a user."""
        return self._bulk_update(
            user_id,
            {TaskDB.assigned_user: None, TaskDB.assigned_user_name: None},
            "Unassigned",
        )
