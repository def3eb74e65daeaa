"""Store interfaces used by the relationship synchronizer and the API.

The synchronizer depends on these Protocols instead of the SQLAlchemy
repositories, so it can run against the in-memory fakes in tests.
"""

from typing import List, Optional, Protocol

from taskboard.models.task import Task
from taskboard.models.user import User
from taskboard.query.builder import Query


class DuplicateKeyError(Exception):
    """A write violated a unique index (users.email)."""

    def __init__(self, field: str, value: str):
        super().__init__(f"Duplicate value for {field}: {value}")
        self.field = field
        self.value = value


class UserStore(Protocol):
    def get(self, user_id: str) -> Optional[User]: ...
    def find(self, query: Query) -> List[User]: ...
    def count(self, query: Query) -> int: ...
    def create(self, user: User) -> User: ...
    def update(self, user: User) -> User: ...
    def delete(self, user_id: str) -> bool: ...


class TaskStore(Protocol):
    def get(self, task_id: str) -> Optional[Task]: ...
    def find(self, query: Query) -> List[Task]: ...
    def count(self, query: Query) -> int: ...
    def create(self, task: Task) -> Task: ...
    def update(self, task: Task) -> Task: ...
    def delete(self, task_id: str) -> bool: ...

    # Bulk updates over every task assigned to a user (completed ones included)
    def rename_assignee(self, user_id: str, name: str) -> int: ...
    def unassign_all(self, user_id: str) -> int: ...
