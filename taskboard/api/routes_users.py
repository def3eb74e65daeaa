"""User endpoints: /api/users."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status

from taskboard.api.deps import get_synchronizer, get_user_repository
from taskboard.api.responses import bad_request, envelope, not_found, ok, server_error
from taskboard.database.ports import DuplicateKeyError
from taskboard.database.user_repository import UserRepository
from taskboard.engine.relationships import RelationshipSynchronizer
from taskboard.models.constants import DEFAULT_USER_LIMIT
from taskboard.models.factory import new_user
from taskboard.models.user import User, UserPayload
from taskboard.query.fields import USER_FIELDS
from taskboard.query.params import interpret_query_params, parse_select_param

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_FIELDS_MESSAGE = "User must have a name and email"
DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"


def _load_user(users: UserRepository, user_id: str) -> User:
    try:
        user = users.get(user_id)
    except Exception as e:
        raise server_error("Error retrieving user", e)
    if user is None:
        raise not_found("User")
    return user


def _validated(payload: Optional[UserPayload]) -> UserPayload:
    payload = payload or UserPayload()
    if not payload.name or not payload.email:
        raise bad_request(REQUIRED_FIELDS_MESSAGE)
    return payload


@router.get("")
def list_users(request: Request, users: UserRepository = Depends(get_user_repository)):
    """List users filtered by where/filter, sort, select, skip, limit, count."""
    query = interpret_query_params(request.query_params, USER_FIELDS, DEFAULT_USER_LIMIT)
    if query.count_only:
        try:
            return ok(users.count(query))
        except Exception as e:
            raise server_error("Error counting users", e)
    try:
        found = users.find(query)
    except Exception as e:
        raise server_error("Error retrieving users", e)
    return ok([query.project(user.to_document()) for user in found])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: Optional[UserPayload] = None,
    users: UserRepository = Depends(get_user_repository),
    sync: RelationshipSynchronizer = Depends(get_synchronizer),
):
    """Create a user and point the tasks in its pendingTasks at it."""
    payload = _validated(payload)
    user = new_user(payload.name, payload.email, payload.pending_tasks)
    try:
        saved = users.create(user)
    except DuplicateKeyError:
        raise bad_request(DUPLICATE_EMAIL_MESSAGE)
    except Exception as e:
        raise server_error("Error creating user", e)

    sync.after_user_created(saved)
    logger.info(f"Created user {saved.id}")
    return envelope("User created successfully", saved.to_document())


@router.get("/{user_id}")
def get_user(user_id: str, request: Request, users: UserRepository = Depends(get_user_repository)):
    projection = parse_select_param(request.query_params)
    user = _load_user(users, user_id)
    doc = user.to_document()
    return ok(projection.apply(doc) if projection else doc)


@router.put("/{user_id}")
def replace_user(
    user_id: str,
    payload: Optional[UserPayload] = None,
    users: UserRepository = Depends(get_user_repository),
    sync: RelationshipSynchronizer = Depends(get_synchronizer),
):
    """Replace name, email and pendingTasks of a user.

    An omitted pendingTasks list empties it.
    """
    payload = _validated(payload)
    existing = _load_user(users, user_id)
    replacement = existing.model_copy(update={
        "name": payload.name,
        "email": payload.email,
        "pending_tasks": list(payload.pending_tasks or []),
    })
    try:
        saved = users.update(replacement)
    except DuplicateKeyError:
        raise bad_request(DUPLICATE_EMAIL_MESSAGE)
    except Exception as e:
        raise server_error("Error updating user", e)

    sync.after_user_updated(existing, saved)
    return envelope("User updated successfully", saved.to_document())


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    users: UserRepository = Depends(get_user_repository),
    sync: RelationshipSynchronizer = Depends(get_synchronizer),
):
    """Unassign the user's tasks, then delete the user."""
    user = _load_user(users, user_id)
    sync.before_user_deleted(user)
    try:
        users.delete(user_id)
    except Exception as e:
        raise server_error("Error deleting user", e)
    logger.info(f"Deleted user {user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
