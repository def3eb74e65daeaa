"""Task data model for taskboard."""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

from taskboard.models.constants import ID_FIELD, UNASSIGNED_USER_ID, UNASSIGNED_USER_NAME
from taskboard.models.timeutil import as_naive_utc


class Task(BaseModel):
    """Canonical Task model.

    ``assigned_user`` and ``assigned_user_name`` are None when the task is
    unassigned; the legacy wire sentinels are applied by :meth:`to_document`.
    """
    
    id: str = Field(..., alias=ID_FIELD, description="Unique task identifier (UUID v4)")
    name: str = Field(..., description="Task name")
    description: str = Field("", description="Task description")
    deadline: datetime = Field(..., description="Task deadline")
    completed: bool = Field(False, description="Whether the task is completed")
    assigned_user: Optional[str] = Field(None, alias="assignedUser", description="Assigned user id")
    assigned_user_name: Optional[str] = Field(
        None,
        alias="assignedUserName",
        description="Cached name of the assigned user",
    )
    date_created: datetime = Field(..., alias="dateCreated", description="Task creation timestamp")
    
    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    @field_validator("deadline", "date_created")
    @classmethod
    def _normalize_timestamps(cls, value: datetime) -> datetime:
        return as_naive_utc(value)

    @property
    def is_pending(self) -> bool:
        """True when the task should appear in its assignee's pendingTasks."""
        return bool(self.assigned_user) and not self.completed

    def to_document(self) -> Dict[str, Any]:
        """Render the task as a wire document."""
        doc = self.model_dump(mode="json", by_alias=True)
        if doc["assignedUser"] is None:
            doc["assignedUser"] = UNASSIGNED_USER_ID
        if doc["assignedUserName"] is None:
            doc["assignedUserName"] = UNASSIGNED_USER_NAME
        return doc


class TaskPayload(BaseModel):
    """Request body for POST/PUT /api/tasks."""

    name: Optional[str] = None
    description: Optional[str] = None
    deadline: Optional[datetime] = None
    # Kept raw; is_completed() decides.
    completed: Any = None
    assigned_user: Optional[str] = Field(None, alias="assignedUser")
    assigned_user_name: Optional[str] = Field(None, alias="assignedUserName")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    @field_validator("deadline")
    @classmethod
    def _normalize_deadline(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(value) if value is not None else None

    def is_completed(self) -> bool:
        """Only ``true`` or the string ``"true"`` mark a task completed."""
        return self.completed is True or self.completed == "true"

    def assignee(self) -> Optional[str]:
        """Assigned user id with the empty-string sentinel mapped to None."""
        return self.assigned_user or None

    def assignee_name(self) -> Optional[str]:
        """Supplied assignee name with the "unassigned" sentinel mapped to None."""
        if not self.assigned_user_name or self.assigned_user_name == UNASSIGNED_USER_NAME:
            return None
        return self.assigned_user_name
