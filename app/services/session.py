"""Request-scoped login state: session login, remember-me cookies, flash messages.

One SessionManager is built per request (see app.api.deps.get_session_manager)
and caches the resolved current user for that request only. Cookie writes are
queued on request.state and copied onto the outgoing response by the
middleware in app.main, so they survive even when the response is produced by
an exception handler.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

import app.repositories.user as user_repo
from app.core.config import settings
from app.core.security import (
    TokenKind,
    authenticated,
    hash_secret,
    issue_token,
    sign_user_id,
    unsign_user_id,
)
from app.db.models.user import User as UserModel

logger = logging.getLogger(__name__)

# Session keys
SESSION_ID = "session_id"
SESSION_USER_ID = "user_id"
SESSION_TOKEN = "session_token"
FORWARDING_URL = "forwarding_url"
FLASH = "flash"

# Keys that outlive a login; everything else is dropped when the session is regenerated.
_CARRIED_OVER = (FORWARDING_URL, FLASH)

# Persistent cookies
USER_ID_COOKIE = "user_id"
REMEMBER_TOKEN_COOKIE = "remember_token"


@dataclass
class CookieWrite:
    key: str
    value: str | None  # None deletes the cookie
    max_age: int | None = None


def set_flash(session: dict, kind: str, message: str) -> None:
    """Leave a one-shot message for the next page the client renders."""
    session[FLASH] = {"kind": kind, "message": message}


def apply_cookie_writes(request: Request, response) -> None:
    """Copy the cookie writes queued during this request onto the response."""
    for write in getattr(request.state, "cookie_writes", []):
        if write.value is None:
            response.delete_cookie(write.key, path="/")
        else:
            response.set_cookie(
                write.key,
                value=write.value,
                max_age=write.max_age,
                path="/",
                httponly=True,
                samesite="lax",
                secure=settings.secure_cookies,
            )


def _fingerprint(digest: str) -> str:
    """What the session stores instead of the remember digest itself."""
    return hashlib.sha256(digest.encode("utf-8")).hexdigest()


class SessionManager:
    """Login state for a single request."""

    def __init__(self, request: Request, db: Session):
        self.request = request
        self.db = db
        self._current_user: UserModel | None = None
        self._resolved = False

    @property
    def session(self) -> dict:
        return self.request.session

    def _queue_cookie(self, key: str, value: str | None, max_age: int | None = None) -> None:
        writes = getattr(self.request.state, "cookie_writes", None)
        if writes is None:
            writes = []
            self.request.state.cookie_writes = writes
        writes.append(CookieWrite(key=key, value=value, max_age=max_age))

    def _session_token(self, user: UserModel) -> str:
        """
        Token binding a session to the user's current remember digest.

        A user without a digest gets a fresh one, so forgetting the user later
        (logout anywhere) invalidates every session built on the old digest.
        """
        if not user.remember_digest:
            user_repo.set_remember_digest(self.db, user, hash_secret(issue_token()))
        return _fingerprint(user.remember_digest)

    def _session_token_matches(self, user: UserModel) -> bool:
        stored = self.session.get(SESSION_TOKEN)
        if not stored or not user.remember_digest:
            return False
        return hmac.compare_digest(stored, _fingerprint(user.remember_digest))

    def log_in(self, user: UserModel) -> None:
        """Start a fresh session for user, discarding any previous session identity."""
        carried = {key: self.session[key] for key in _CARRIED_OVER if key in self.session}
        self.session.clear()
        self.session.update(carried)
        self.session[SESSION_ID] = issue_token()
        self.session[SESSION_USER_ID] = user.id
        self.session[SESSION_TOKEN] = self._session_token(user)
        self._current_user = user
        self._resolved = True
        logger.info("User %s logged in", user.id)

    def remember(self, user: UserModel) -> None:
        """Persist the login across browser restarts."""
        token = issue_token()
        user_repo.set_remember_digest(self.db, user, hash_secret(token))
        max_age = settings.remember_cookie_max_age
        self._queue_cookie(USER_ID_COOKIE, sign_user_id(user.id), max_age)
        self._queue_cookie(REMEMBER_TOKEN_COOKIE, token, max_age)

    def forget(self, user: UserModel) -> None:
        """Revoke the persistent login and delete its cookies."""
        user_repo.set_remember_digest(self.db, user, None)
        self._queue_cookie(USER_ID_COOKIE, None)
        self._queue_cookie(REMEMBER_TOKEN_COOKIE, None)

    def current_user(self) -> UserModel | None:
        """
        Resolve the logged-in user, once per request.

        The session is tried first. Failing that, a valid remember-me cookie
        pair logs the user in again so later requests use the session.
        Anything that does not check out resolves to None.
        """
        if self._resolved:
            return self._current_user
        self._resolved = True

        user_id = self.session.get(SESSION_USER_ID)
        if user_id is not None:
            user = user_repo.get_user_by_id(self.db, user_id)
            if user is not None and self._session_token_matches(user):
                self._current_user = user
            else:
                logger.info("Discarding stale session for user %s", user_id)
                for key in (SESSION_ID, SESSION_USER_ID, SESSION_TOKEN):
                    self.session.pop(key, None)
            return self._current_user

        cookie_user_id = unsign_user_id(self.request.cookies.get(USER_ID_COOKIE))
        if cookie_user_id is not None:
            user = user_repo.get_user_by_id(self.db, cookie_user_id)
            remember_token = self.request.cookies.get(REMEMBER_TOKEN_COOKIE)
            if user is not None and authenticated(user, TokenKind.REMEMBER, remember_token):
                self.log_in(user)
                logger.info("Restored session for user %s from remember cookie", user.id)
        return self._current_user

    def is_current_user(self, user: UserModel | None) -> bool:
        current = self.current_user()
        return user is not None and current is not None and current.id == user.id

    def logged_in(self) -> bool:
        return self.current_user() is not None

    def log_out(self) -> None:
        user = self.current_user()
        if user is not None:
            self.forget(user)
            logger.info("User %s logged out", user.id)
        for key in (SESSION_ID, SESSION_USER_ID, SESSION_TOKEN):
            self.session.pop(key, None)
        self._current_user = None
        self._resolved = True

    def store_location(self) -> None:
        """Remember where a GET request was headed before it was sent to log in."""
        if self.request.method == "GET":
            self.session[FORWARDING_URL] = str(self.request.url)

    def redirect_back_or(self, default: str) -> RedirectResponse:
        """Redirect to the stored location (used once) or to default."""
        url = self.session.pop(FORWARDING_URL, None) or default
        return RedirectResponse(url, status_code=303)

    def flash(self, kind: str, message: str) -> None:
        set_flash(self.session, kind, message)

    def pop_flash(self) -> dict | None:
        return self.session.pop(FLASH, None)
