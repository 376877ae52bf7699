import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import app.repositories.micropost as micropost_repo
import app.repositories.relationship as relationship_repo
import app.repositories.user as user_repo
from app.core.config import settings
from app.core.security import (
    hash_secret,
    is_valid_email,
    issue_token,
    normalize_email,
    validate_password,
)
from app.db.models.user import User as UserModel
from app.errors import DomainValidationError, NotFoundError, RedirectError
from app.schemas.micropost import Micropost
from app.schemas.pagination import PaginatedResponse
from app.schemas.user import PublicUser, UserCreate, UserProfile, UserStats, UserUpdate
from app.services.email import MailDeliveryError, send_account_activation_email
from app.services.session import SessionManager

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 50
EMAIL_MAX_LENGTH = 255
EMAIL_TAKEN = "has already been taken"


def _validate_name(name: str | None, errors: dict[str, list[str]]) -> str:
    name = (name or "").strip()
    if not name:
        errors.setdefault("name", []).append("can't be blank")
    elif len(name) > NAME_MAX_LENGTH:
        errors.setdefault("name", []).append(
            f"is too long (maximum is {NAME_MAX_LENGTH} characters)"
        )
    return name


def _validate_email(
    db: Session,
    email: str | None,
    errors: dict[str, list[str]],
    exclude_id: int | None = None,
) -> str:
    """Normalize the email and check format, length and case-insensitive uniqueness."""
    email = normalize_email(email)
    if not email:
        errors.setdefault("email", []).append("can't be blank")
        return email
    if len(email) > EMAIL_MAX_LENGTH:
        errors.setdefault("email", []).append(
            f"is too long (maximum is {EMAIL_MAX_LENGTH} characters)"
        )
    if not is_valid_email(email):
        errors.setdefault("email", []).append("is invalid")
    existing = user_repo.get_user_by_email(db, email)
    if existing is not None and existing.id != exclude_id:
        errors.setdefault("email", []).append(EMAIL_TAKEN)
    return email


def _merge(errors: dict[str, list[str]], more: dict[str, list[str]]) -> None:
    for field, messages in more.items():
        errors.setdefault(field, []).extend(messages)


def create_user(db: Session, user_data: UserCreate) -> tuple[UserModel, str]:
    """
    Create a new, not yet activated user.

    - Normalizes the email (trimmed, lower-cased) before any check
    - Validates name, email format and uniqueness, password policy
    - Stores only the digest of the activation token

    Returns:
        Tuple of (user, plaintext activation token)

    Raises:
        DomainValidationError: With field-level messages if anything is invalid
    """
    errors: dict[str, list[str]] = {}
    name = _validate_name(user_data.name, errors)
    email = _validate_email(db, user_data.email, errors)
    _merge(
        errors,
        validate_password(user_data.password, user_data.password_confirmation, required=True),
    )
    if errors:
        raise DomainValidationError("User is invalid", errors)

    activation_token = issue_token()
    try:
        user = user_repo.create_user(
            db,
            email=email,
            name=name,
            password_hash=hash_secret(user_data.password),
            activation_digest=hash_secret(activation_token),
        )
    except IntegrityError:
        # A concurrent signup won the unique index on email
        db.rollback()
        raise DomainValidationError("User is invalid", {"email": [EMAIL_TAKEN]})
    return user, activation_token


async def signup(db: Session, user_data: UserCreate) -> UserModel:
    """Create the user and send the activation email. Mail failures are logged, not raised."""
    user, activation_token = create_user(db, user_data)
    try:
        await send_account_activation_email(user.email, user.name, activation_token)
    except (ValueError, MailDeliveryError) as e:
        logger.error("Failed to send activation email: %s", e)
    return user


def get_user(db: Session, user_id: int) -> UserModel:
    """
    Get a user by ID.

    Raises:
        NotFoundError: If user doesn't exist
    """
    user = user_repo.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def get_profile(
    db: Session,
    user_id: int,
    session: SessionManager,
    page: int = 1,
    page_size: int = 30,
) -> UserProfile:
    """
    Build the public profile of a user, as seen by the current viewer.

    Raises:
        NotFoundError: If user doesn't exist
        RedirectError: If the account is not activated yet
    """
    user = get_user(db, user_id)
    if not user.activated:
        raise RedirectError(settings.root_url, "warning", "Account not activated.")

    viewer = session.current_user()
    is_following = None
    if viewer is not None:
        is_following = (
            relationship_repo.get_relationship(db, viewer.id, user.id) is not None
        )

    microposts, total = micropost_repo.get_microposts_by_user_id_paginated(
        db, user.id, page=page, page_size=page_size
    )
    return UserProfile(
        user=PublicUser.model_validate(user),
        is_self=session.is_current_user(user),
        is_following=is_following,
        stats=UserStats(
            microposts=total,
            following=relationship_repo.count_following(db, user.id),
            followers=relationship_repo.count_followers(db, user.id),
        ),
        microposts=PaginatedResponse(
            items=[Micropost.model_validate(m) for m in microposts],
            total=total,
            page=page,
            page_size=page_size,
        ),
    )


def update_user(db: Session, user: UserModel, user_data: UserUpdate) -> UserModel:
    """
    Update a user's own profile.

    Who may do this is decided by the guard before this runs.

    - Name and email are validated like on signup when given
    - A blank password leaves the current one unchanged

    Raises:
        DomainValidationError: With field-level messages if anything is invalid
    """
    errors: dict[str, list[str]] = {}
    name = None
    email = None
    if user_data.name is not None:
        name = _validate_name(user_data.name, errors)
    if user_data.email is not None:
        email = _validate_email(db, user_data.email, errors, exclude_id=user.id)
    _merge(
        errors,
        validate_password(user_data.password, user_data.password_confirmation, required=False),
    )
    if errors:
        raise DomainValidationError("User is invalid", errors)

    password_hash = hash_secret(user_data.password) if user_data.password else None
    try:
        return user_repo.update_user(
            db,
            user_id=user.id,
            email=email,
            name=name,
            password_hash=password_hash,
        )
    except IntegrityError:
        db.rollback()
        raise DomainValidationError("User is invalid", {"email": [EMAIL_TAKEN]})


def get_users(
    db: Session, page: int = 1, page_size: int = 30
) -> tuple[list[UserModel], int]:
    """Activated users, paginated. Unactivated accounts are never listed."""
    return user_repo.get_activated_users_paginated(db, page=page, page_size=page_size)


def delete_user(db: Session, user_id: int) -> None:
    """
    Delete a user together with their microposts and every follow edge touching them.

    Raises:
        NotFoundError: If user doesn't exist
    """
    user = get_user(db, user_id)
    user_repo.delete_user(db, user)
    logger.info("User %s deleted", user_id)
