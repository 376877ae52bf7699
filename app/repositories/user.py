from datetime import datetime
from sqlalchemy.orm import Session

from app.db.base import is_storable_id
from app.db.models.user import User as UserModel
from app.errors import NotFoundError


def get_user_by_email(db: Session, email: str) -> UserModel | None:
    """Get a user by (already normalized) email."""
    return db.query(UserModel).filter(UserModel.email == email).first()


def get_user_by_id(db: Session, user_id: int) -> UserModel | None:
    """Get a user by ID."""
    if not is_storable_id(user_id):
        return None
    return db.query(UserModel).filter(UserModel.id == user_id).first()


def create_user(
    db: Session,
    email: str,
    name: str,
    password_hash: str,
    activation_digest: str | None = None,
    activated: bool = False,
    activated_at: datetime | None = None,
    admin: bool = False,
) -> UserModel:
    """Create a new user in the database. Pure data access - no business logic."""
    db_user = UserModel(
        email=email,
        name=name,
        password_hash=password_hash,
        activation_digest=activation_digest,
        activated=activated,
        activated_at=activated_at,
        admin=admin,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(
    db: Session,
    user_id: int,
    email: str | None = None,
    name: str | None = None,
    password_hash: str | None = None,
) -> UserModel:
    """Update user fields. Only provided fields will be updated."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    if email is not None:
        user.email = email
    if name is not None:
        user.name = name
    if password_hash is not None:
        user.password_hash = password_hash

    db.commit()
    db.refresh(user)
    return user


def set_remember_digest(db: Session, user: UserModel, digest: str | None) -> UserModel:
    """Store (or clear, with None) the remember-me digest."""
    user.remember_digest = digest
    db.commit()
    db.refresh(user)
    return user


def activate_user(db: Session, user: UserModel, activated_at: datetime) -> UserModel:
    """Mark the account activated and drop its activation digest."""
    user.activated = True
    user.activated_at = activated_at
    user.activation_digest = None
    db.commit()
    db.refresh(user)
    return user


def set_reset_digest(
    db: Session, user: UserModel, digest: str, sent_at: datetime
) -> UserModel:
    """Store a password reset digest and when it was sent."""
    user.reset_digest = digest
    user.reset_sent_at = sent_at
    db.commit()
    db.refresh(user)
    return user


def update_user_password(db: Session, user: UserModel, password_hash: str) -> UserModel:
    """Update a user's password and consume any pending reset."""
    user.password_hash = password_hash
    user.reset_digest = None
    user.reset_sent_at = None
    db.commit()
    db.refresh(user)
    return user


def get_activated_users_paginated(
    db: Session, page: int = 1, page_size: int = 30
) -> tuple[list[UserModel], int]:
    """
    Get activated users with pagination, sorted by id for stable pagination.

    Args:
        page: Page number (1-indexed)
        page_size: Number of items per page

    Returns:
        Tuple of (list of users, total count)
    """
    query = db.query(UserModel).filter(UserModel.activated.is_(True))
    total = query.count()
    skip = (page - 1) * page_size
    users = query.order_by(UserModel.id).offset(skip).limit(page_size).all()
    return users, total


def delete_user(db: Session, user: UserModel) -> None:
    """Delete a user. Microposts and follow edges go with it (ORM cascade)."""
    db.delete(user)
    db.commit()
