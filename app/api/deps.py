import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

import app.repositories.user as user_repo
from app.core.config import settings
from app.db.base import SessionLocal
from app.db.models.user import User
from app.errors import ForbiddenError, LoginRequiredError
from app.services.session import SessionManager

logger = logging.getLogger(__name__)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_manager(
    request: Request,
    db: Session = Depends(get_db),
) -> SessionManager:
    """
    Login state for this request.

    FastAPI caches dependencies per request, so every dependency and route in
    one request shares the same manager and its cached current user.
    """
    return SessionManager(request, db)


def require_login(session: SessionManager = Depends(get_session_manager)) -> User:
    """
    Require a logged-in user.

    Otherwise remember where the client was going, leave a message and send
    it to the login entry point.
    """
    user = session.current_user()
    if user is None:
        session.store_location()
        raise LoginRequiredError(settings.login_url, "danger", "Please log in.")
    return user


def require_self_or_redirect(target_user: User, current_user: User) -> None:
    """Only the user themselves may go on; anyone else is sent home without a reason."""
    if target_user.id != current_user.id:
        logger.debug("User %s denied access to user %s", current_user.id, target_user.id)
        raise ForbiddenError(settings.root_url)


def require_correct_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_login),
) -> User:
    """
    Resolve the {user_id} path parameter and require it to be the current user.

    A missing user is treated like somebody else's. Returns the target user.
    """
    user = user_repo.get_user_by_id(db, user_id)
    if user is None:
        raise ForbiddenError(settings.root_url)
    require_self_or_redirect(user, current_user)
    return user


def require_admin(current_user: User = Depends(require_login)) -> User:
    """Require the logged-in user to be an admin."""
    if not current_user.admin:
        logger.debug("User %s denied admin action", current_user.id)
        raise ForbiddenError(settings.root_url)
    return current_user
