import logging

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_session_manager, require_login
from app.core.config import settings
from app.db.models.user import User as UserModel
from app.schemas.session import Flash, SessionState
from app.schemas.user import PasswordReset, PasswordResetRequest, User
from app.services import auth as auth_service
from app.services.session import SessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
def login(
    email: str = Form(""),
    password: str = Form(""),
    remember_me: bool = Form(True),
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
):
    """
    Log in with email and password (form data).

    On success the client is sent back to the page it was trying to reach,
    or to the home page. A wrong email and a wrong password get the same answer.
    """
    auth_service.login(db, session, email, password, remember_me=remember_me)
    return session.redirect_back_or(settings.root_url)


@router.delete("/logout")
def logout(session: SessionManager = Depends(get_session_manager)):
    """Log out, forgetting any remember-me cookie. Safe to call when logged out."""
    if session.logged_in():
        session.log_out()
    session.flash("notice", "Logged out successfully.")
    return RedirectResponse(settings.root_url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/session", response_model=SessionState)
def get_session_state(session: SessionManager = Depends(get_session_manager)):
    """Current login state and the pending flash message (consumed by this call)."""
    user = session.current_user()
    flash = session.pop_flash()
    return SessionState(
        logged_in=user is not None,
        current_user=User.model_validate(user) if user else None,
        flash=Flash(**flash) if flash else None,
    )


@router.get("/me", response_model=User)
def get_current_user_info(current_user: UserModel = Depends(require_login)):
    """Get current authenticated user information."""
    return User.model_validate(current_user)


@router.get("/activate/{token}")
def activate_account(
    request: Request,
    token: str,
    email: str = Query(...),
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
):
    """Activate an account from the emailed link and log the user in."""
    user = auth_service.activate_account(db, session, email, token)
    session.flash("success", "Account activated!")
    return RedirectResponse(
        str(request.url_for("show_user", user_id=user.id)),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.post("/password-resets")
async def forgot_password(
    reset_request: PasswordResetRequest,
    db: Session = Depends(get_db),
):
    """Request password reset - sends email with reset token."""
    return await auth_service.forgot_password(db, reset_request.email)


@router.post("/password-resets/{token}")
def reset_password(
    request: Request,
    token: str,
    reset_data: PasswordReset,
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
):
    """Reset password using the token from the email, then log in."""
    user = auth_service.reset_password(
        db,
        session,
        token,
        reset_data.email,
        reset_data.password,
        reset_data.password_confirmation,
    )
    session.flash("success", "Password has been reset.")
    return RedirectResponse(
        str(request.url_for("show_user", user_id=user.id)),
        status_code=status.HTTP_303_SEE_OTHER,
    )
