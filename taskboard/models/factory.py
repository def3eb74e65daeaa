"""Document creation factory for taskboard.

This module centralizes id and timestamp assignment so that handlers and
tests build new users and tasks the same way.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from taskboard.models.task import Task
from taskboard.models.user import User


def new_id() -> str:
    """Generate a new document id (UUID v4)."""
    return str(uuid.uuid4())


def new_user(name: str, email: str, pending_tasks: Optional[List[str]] = None) -> User:
    """Create a user with a fresh id and creation timestamp.
    
    Args:
        name: User display name
        email: User email address
        pending_tasks: Initial pending task ids (kept as given, duplicates included)
        
    Returns:
        User object ready to be stored
    """
    return User(
        id=new_id(),
        name=name,
        email=email,
        pending_tasks=list(pending_tasks or []),
        date_created=datetime.utcnow(),
    )


def new_task(
    name: str,
    deadline: datetime,
    description: str = "",
    completed: bool = False,
    assigned_user: Optional[str] = None,
    assigned_user_name: Optional[str] = None,
) -> Task:
    """Create a task with a fresh id and creation timestamp.
    
    An unassigned task never carries an assignee name.
    """
    return Task(
        id=new_id(),
        name=name,
        description=description,
        deadline=deadline,
        completed=completed,
        assigned_user=assigned_user,
        assigned_user_name=assigned_user_name if assigned_user else None,
        date_created=datetime.utcnow(),
    )
