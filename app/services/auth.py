"""Auth service: login, account activation, password reset token creation, validation, and password update."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

import app.repositories.user as user_repo
from app.core.config import settings
from app.core.security import (
    TokenKind,
    authenticated,
    hash_secret,
    issue_token,
    normalize_email,
    validate_password,
    verify_dummy,
)
from app.db.models.user import User as UserModel
from app.errors import DomainValidationError, RedirectError, UnauthorizedError
from app.services.email import (
    MailDeliveryError,
    send_password_reset_email,
)
from app.services.session import SessionManager

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email/password combination"


def authenticate(db: Session, email: str | None, password: str | None) -> UserModel:
    """
    Check an email/password pair.

    Raises:
        UnauthorizedError: If either field is blank, the email is unknown or
            the password is wrong. The message is the same in every case.
    """
    email = normalize_email(email)
    if not email or not password:
        raise UnauthorizedError(INVALID_CREDENTIALS)

    user = user_repo.get_user_by_email(db, email)
    if user is None:
        verify_dummy(password)
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not authenticated(user, TokenKind.PASSWORD, password):
        raise UnauthorizedError(INVALID_CREDENTIALS)
    return user


def login(
    db: Session,
    session: SessionManager,
    email: str | None,
    password: str | None,
    remember_me: bool = True,
) -> UserModel:
    """
    Authenticate and establish a login session.

    Raises:
        UnauthorizedError: If the credentials do not check out.
        RedirectError: If the account exists but is not activated yet.
    """
    user = authenticate(db, email, password)
    if not user.activated:
        raise RedirectError(
            settings.root_url,
            "warning",
            "Account not activated. Check your email for the activation link.",
        )

    # The remember digest must be settled before log_in binds the session to it.
    if remember_me:
        session.remember(user)
    else:
        session.forget(user)
    session.log_in(user)
    return user


def activate_account(
    db: Session, session: SessionManager, email: str | None, token: str
) -> UserModel:
    """
    Activate an account from the link in the activation email and log the user in.

    Raises:
        RedirectError: If the link does not match an account awaiting activation.
    """
    user = user_repo.get_user_by_email(db, normalize_email(email))
    if (
        user is None
        or user.activated
        or not authenticated(user, TokenKind.ACTIVATION, token)
    ):
        raise RedirectError(settings.root_url, "danger", "Invalid activation link")

    user_repo.activate_user(db, user, datetime.now(timezone.utc))
    session.log_in(user)
    logger.info("User %s activated", user.id)
    return user


async def forgot_password(db: Session, email: str | None) -> dict[str, str]:
    """
    Request password reset: create token, store its digest, send email.

    Always returns the same success message (no user enumeration).
    Logs but does not raise when the mail cannot be sent.
    """
    user = user_repo.get_user_by_email(db, normalize_email(email))
    if user and user.activated:
        reset_token = issue_token()
        user_repo.set_reset_digest(
            db, user, hash_secret(reset_token), datetime.now(timezone.utc)
        )
        try:
            await send_password_reset_email(user.email, reset_token)
        except (ValueError, MailDeliveryError) as e:
            logger.error("Failed to send password reset email: %s", e)

    return {"message": "If the email exists, a password reset link has been sent."}


def _reset_expired(user: UserModel) -> bool:
    sent_at = user.reset_sent_at
    if sent_at is None:
        return True
    # SQLite hands datetimes back naive; they were written as UTC.
    if sent_at.tzinfo is None:
        sent_at = sent_at.replace(tzinfo=timezone.utc)
    expires = sent_at + timedelta(minutes=settings.password_reset_expire_minutes)
    return datetime.now(timezone.utc) > expires


def reset_password(
    db: Session,
    session: SessionManager,
    token: str,
    email: str | None,
    new_password: str | None,
    password_confirmation: str | None = None,
) -> UserModel:
    """
    Reset password using the token from the email, then log the user in.

    Raises:
        RedirectError: If the link is invalid or has expired.
        DomainValidationError: If the new password does not meet the policy.
    """
    user = user_repo.get_user_by_email(db, normalize_email(email))
    if (
        user is None
        or not user.activated
        or not authenticated(user, TokenKind.RESET, token)
    ):
        raise RedirectError(settings.root_url, "danger", "Invalid password reset link")

    if _reset_expired(user):
        raise RedirectError(settings.root_url, "danger", "Password reset has expired.")

    errors = validate_password(new_password, password_confirmation, required=True)
    if errors:
        raise DomainValidationError("Password is invalid", errors)

    user_repo.update_user_password(db, user, hash_secret(new_password))
    session.log_in(user)
    logger.info("Password reset for user %s", user.id)
    return user
