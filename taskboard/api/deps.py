"""FastAPI dependencies wiring stores and the synchronizer per request."""

from fastapi import Depends
from sqlalchemy.orm import Session

from taskboard.database.database import get_db
from taskboard.database.repository import TaskRepository
from taskboard.database.user_repository import UserRepository
from taskboard.engine.relationships import RelationshipSynchronizer


def get_user_repository(db: Session = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_task_repository(db: Session = Depends(get_db)) -> TaskRepository:
    return TaskRepository(db)


def get_synchronizer(
    users: UserRepository = Depends(get_user_repository),
    tasks: TaskRepository = Depends(get_task_repository),
) -> RelationshipSynchronizer:
    """Synchronizer bound to the same session as the request's repositories."""
    return RelationshipSynchronizer(users, tasks)
