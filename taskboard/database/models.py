"""SQLAlchemy database models for taskboard."""

from datetime import datetime
from typing import List
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from taskboard.database.database import Base


class UserDB(Base):
    """Database model for User."""
    
    __tablename__ = "users"
    
    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    
    # User profile
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    
    # Timestamps
    date_created = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Ordered pendingTasks list, one row per entry
    pending_task_links = relationship(
        "PendingTaskDB",
        order_by="PendingTaskDB.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def pending_tasks(self) -> List[str]:
        return [link.task_id for link in self.pending_task_links]

    def set_pending_tasks(self, task_ids: List[str]) -> None:
        """Replace the pendingTasks list, keeping order and duplicates."""
        self.pending_task_links = [
            PendingTaskDB(position=position, task_id=task_id)
            for position, task_id in enumerate(task_ids)
        ]
    
    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskboard.models.user import User
        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            pending_tasks=self.pending_tasks,
            date_created=self.date_created,
        )
    
    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        user_db = cls(
            id=user.id,
            name=user.name,
            email=user.email,
            date_created=user.date_created,
        )
        user_db.set_pending_tasks(user.pending_tasks)
        return user_db


class PendingTaskDB(Base):
    """One entry of a user's pendingTasks list.

    ``task_id`` is not a foreign key: the list may reference
    tasks that were removed out-of-band.
    """

    __tablename__ = "user_pending_tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    task_id = Column(String, nullable=False, index=True)


class TaskDB(Base):
    """Database model for Task."""
    
    __tablename__ = "tasks"
    
    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    
    # Basic fields
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    deadline = Column(DateTime, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    
    # Assignment (NULL = unassigned)
    assigned_user = Column(String, nullable=True, index=True)
    assigned_user_name = Column(String, nullable=True)
    
    # Timestamps
    date_created = Column(DateTime, nullable=False, default=datetime.utcnow)
    
    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskboard.models.task import Task
        
        return Task(
            id=self.id,
            name=self.name,
            description=self.description or "",
            deadline=self.deadline,
            completed=bool(self.completed),
            assigned_user=self.assigned_user,
            assigned_user_name=self.assigned_user_name,
            date_created=self.date_created,
        )
    
    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            name=task.name,
            description=task.description,
            deadline=task.deadline,
            completed=task.completed,
            assigned_user=task.assigned_user,
            assigned_user_name=task.assigned_user_name,
            date_created=task.date_created,
        )
