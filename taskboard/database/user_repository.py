"""Repository for User database operations."""

import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskboard.models.user import User
from taskboard.database.models import UserDB
from taskboard.database.ports import DuplicateKeyError
from taskboard.database.query_sql import apply_query
from taskboard.query.builder import Query

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for User database operations."""
    
    def __init__(self, db: Session):
        self.db = db

    def _get_db(self, user_id: str) -> Optional[UserDB]:
        return self.db.query(UserDB).filter(UserDB.id == user_id).first()
    
    def get(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        user_db = self._get_db(user_id)
        return user_db.to_pydantic() if user_db else None
    
    def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        user_db = self.db.query(UserDB).filter(UserDB.email == email).first()
        return user_db.to_pydantic() if user_db else None

    def find(self, query: Query) -> List[User]:
        """Get users matching a query, sorted and paginated."""
        users_db = apply_query(self.db.query(UserDB), UserDB, query).all()
        return [user_db.to_pydantic() for user_db in users_db]

    def count(self, query: Query) -> int:
        """Count users matching a query after skip/limit are applied."""
        return apply_query(self.db.query(UserDB), UserDB, query).count()

    def _commit(self, user: User) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            existing = self.get_by_email(user.email)
            if existing is not None and existing.id != user.id:
                logger.debug(f"Rejected duplicate email for user {user.id}")
                raise DuplicateKeyError("email", user.email) from e
            logger.error(f"Integrity error on user {user.id}: {str(e)}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save user {user.id}: {type(e).__name__}: {str(e)}")
            raise
    
    def create(self, user: User) -> User:
        """Create a new user.
        
        Raises:
            DuplicateKeyError: If another user already has the same email
        """
        user_db = UserDB.from_pydantic(user)
        self.db.add(user_db)
        self._commit(user)
        self.db.refresh(user_db)
        logger.debug(f"Created user {user.id}: {user.email}")
        return user_db.to_pydantic()

    def update(self, user: User) -> User:
        """Replace name, email and pendingTasks of an existing user.
        
        dateCreated is never changed.
        
        Raises:
            ValueError: If the user does not exist
            DuplicateKeyError: If another user already has the new email
        """
        user_db = self._get_db(user.id)
        if not user_db:
            raise ValueError(f"User {user.id} not found")

        user_db.name = user.name
        user_db.email = user.email
        user_db.set_pending_tasks(user.pending_tasks)
        self._commit(user)
        self.db.refresh(user_db)
        logger.debug(f"Updated user {user.id}: {user.email}")
        return user_db.to_pydantic()
    
    def delete(self, user_id: str) -> bool:
        """Delete a user by ID."""
        user_db = self._get_db(user_id)
        if not user_db:
            return False
        
        try:
            self.db.delete(user_db)
            self.db.commit()
            logger.debug(f"Deleted user {user_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {type(e).__name__}: {str(e)}")
            raise
