"""Social graph: follow/unfollow edges between users."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import app.repositories.relationship as relationship_repo
import app.repositories.user as user_repo
from app.core.config import settings
from app.db.models.user import User as UserModel
from app.errors import NotFoundError, RedirectError

logger = logging.getLogger(__name__)


def is_following(db: Session, actor: UserModel, target: UserModel) -> bool:
    return relationship_repo.get_relationship(db, actor.id, target.id) is not None


def follow(db: Session, actor: UserModel, target: UserModel) -> bool:
    """
    Make actor follow target.

    A self-follow or an existing edge is a no-op. When a concurrent request
    inserts the same edge first, the unique constraint rejects ours and it is
    treated as already following.

    Returns:
        True if a new edge was created
    """
    if actor.id == target.id:
        return False
    if is_following(db, actor, target):
        return False
    try:
        relationship_repo.create_relationship(db, actor.id, target.id)
    except IntegrityError:
        db.rollback()
        logger.info("User %s already follows %s", actor.id, target.id)
        return False
    return True


def unfollow(db: Session, actor: UserModel, target: UserModel) -> bool:
    """
    Remove the edge actor -> target if there is one.

    Returns:
        True if an edge was removed
    """
    relationship = relationship_repo.get_relationship(db, actor.id, target.id)
    if relationship is None:
        return False
    relationship_repo.delete_relationship(db, relationship)
    return True


def follow_user_by_id(db: Session, actor: UserModel, followed_id: int | None) -> UserModel:
    """
    Follow the user with the given id on behalf of actor.

    Raises:
        NotFoundError: If no id was given or the user doesn't exist
        RedirectError: If actor tries to follow themselves
    """
    if followed_id is None:
        raise NotFoundError("No user specified to follow")
    target = user_repo.get_user_by_id(db, followed_id)
    if target is None:
        raise NotFoundError("User not found")
    if target.id == actor.id:
        raise RedirectError(settings.root_url, "error", "You cannot follow yourself")
    follow(db, actor, target)
    return target


def unfollow_by_relationship_id(
    db: Session, actor: UserModel, relationship_id: int
) -> UserModel:
    """
    Remove one of actor's own follow edges.

    An edge that belongs to somebody else is reported exactly like a missing one.

    Returns:
        The user that is no longer followed

    Raises:
        NotFoundError: If the edge doesn't exist or isn't actor's
    """
    relationship = relationship_repo.get_relationship_by_id(db, relationship_id)
    if relationship is None or relationship.follower_id != actor.id:
        raise NotFoundError("Relationship not found")
    target = relationship.followed
    relationship_repo.delete_relationship(db, relationship)
    return target


def get_following(
    db: Session, user_id: int, page: int = 1, page_size: int = 30
) -> tuple[list[UserModel], int]:
    if user_repo.get_user_by_id(db, user_id) is None:
        raise NotFoundError("User not found")
    return relationship_repo.get_following_paginated(db, user_id, page=page, page_size=page_size)


def get_followers(
    db: Session, user_id: int, page: int = 1, page_size: int = 30
) -> tuple[list[UserModel], int]:
    if user_repo.get_user_by_id(db, user_id) is None:
        raise NotFoundError("User not found")
    return relationship_repo.get_followers_paginated(db, user_id, page=page, page_size=page_size)
