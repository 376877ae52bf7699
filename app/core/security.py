import enum
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import jwt
from passlib.context import CryptContext

from app.core.config import settings

if TYPE_CHECKING:
    from app.db.models.user import User

# One hashing context for every secret we persist: passwords, remember,
# activation and reset tokens.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

VALID_EMAIL_REGEX = re.compile(
    r"\A[\w+\-.]+@[a-z\d\-]+(\.[a-z\d\-]+)*\.[a-z]+\Z", re.IGNORECASE
)

REMEMBER_TOKEN_TYPE = "remember"


class TokenKind(enum.Enum):
    """The secrets a user can present, each checked against its own digest."""

    PASSWORD = "password"
    REMEMBER = "remember"
    ACTIVATION = "activation"
    RESET = "reset"


def hash_secret(secret: str) -> str:
    """Hash a password or token with bcrypt."""
    return pwd_context.hash(secret)


def verify_secret(secret: str | None, digest: str | None) -> bool:
    """
    Check a plaintext secret against a stored digest.

    Returns False instead of raising when either side is missing or the
    digest is not a hash passlib recognises.
    """
    if not secret or not digest:
        return False
    try:
        return pwd_context.verify(secret, digest)
    except (ValueError, TypeError):
        return False


def issue_token() -> str:
    """Return a random URL-safe token with 256 bits of entropy."""
    return secrets.token_urlsafe(32)


def digest_for(user: "User", kind: TokenKind) -> str | None:
    """Return the stored digest matching the given token kind."""
    if kind is TokenKind.PASSWORD:
        return user.password_hash
    if kind is TokenKind.REMEMBER:
        return user.remember_digest
    if kind is TokenKind.ACTIVATION:
        return user.activation_digest
    if kind is TokenKind.RESET:
        return user.reset_digest
    raise ValueError(f"Unknown token kind: {kind!r}")


def authenticated(user: "User", kind: TokenKind, token: str | None) -> bool:
    """True if the token matches the user's digest for that kind."""
    return verify_secret(token, digest_for(user, kind))


# Hashed once at import so unknown-email logins still pay for a bcrypt check.
_DUMMY_HASH = hash_secret("timing-equalization-dummy")


def verify_dummy(secret: str) -> None:
    """Burn the same bcrypt work as a real check, for unknown accounts."""
    verify_secret(secret, _DUMMY_HASH)


def normalize_email(email: str | None) -> str:
    """Trim and lower-case an email before it is compared or stored."""
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(VALID_EMAIL_REGEX.match(email))


def validate_password(
    password: str | None,
    confirmation: str | None = None,
    *,
    required: bool = True,
) -> dict[str, list[str]]:
    """
    Validate a password against the policy.

    - Must be present (whitespace only counts as blank) when required
    - Minimum length is PASSWORD_MIN_LENGTH
    - Confirmation, when given, must match

    A blank password with required=False means "leave unchanged" and passes.

    Returns: field name -> list of messages (empty when valid)
    """
    errors: dict[str, list[str]] = {}
    if password is None or password == "":
        if required:
            errors.setdefault("password", []).append("can't be blank")
        return errors

    if not password.strip():
        errors.setdefault("password", []).append("can't be blank")
    if len(password) < settings.password_min_length:
        errors.setdefault("password", []).append(
            f"is too short (minimum is {settings.password_min_length} characters)"
        )
    if confirmation is not None and confirmation != password:
        errors.setdefault("password_confirmation", []).append("doesn't match password")
    return errors


def sign_user_id(user_id: int) -> str:
    """
    Sign a user id for the persistent user_id cookie.

    The value is signed, not encrypted: anyone holding the cookie can read the
    id, but cannot change it without the signature failing.
    """
    expire = datetime.now(timezone.utc) + timedelta(
        seconds=settings.remember_cookie_max_age
    )
    payload = {"sub": str(user_id), "type": REMEMBER_TOKEN_TYPE, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def unsign_user_id(value: str | None) -> int | None:
    """Recover the user id from a signed cookie, or None if it was tampered with."""
    if not value:
        return None
    try:
        payload = jwt.decode(value, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.InvalidTokenError:
        return None
    if payload.get("type") != REMEMBER_TOKEN_TYPE:
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
