"""User data model for taskboard."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from taskboard.models.constants import ID_FIELD
from taskboard.models.timeutil import as_naive_utc


class User(BaseModel):
    """User model for taskboard."""
    
    id: str = Field(..., alias=ID_FIELD, description="Unique user identifier (UUID v4)")
    name: str = Field(..., description="User display name")
    email: str = Field(..., description="User email address (globally unique)")
    pending_tasks: List[str] = Field(
        default_factory=list,
        alias="pendingTasks",
        description="Ordered ids of tasks assigned to this user and not yet completed",
    )
    date_created: datetime = Field(..., alias="dateCreated", description="User creation timestamp")
    
    class Config:
        """Pydantic configuration."""
        populate_by_name = True

    @field_validator("date_created")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return as_naive_utc(value)

    def to_document(self) -> Dict[str, Any]:
        """Render the user as a wire document."""
        return self.model_dump(mode="json", by_alias=True)


class UserPayload(BaseModel):
    """Request body for POST/PUT /api/users.

    Required fields are checked by the handlers so that a missing field
    yields the API's own 400 message instead of a schema error.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    pending_tasks: Optional[List[str]] = Field(None, alias="pendingTasks")

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
