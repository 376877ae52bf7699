from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.api.deps import (
    get_db,
    get_session_manager,
    require_admin,
    require_correct_user,
    require_login,
)
from app.core.config import settings
from app.db.models.user import User as UserModel
from app.schemas.pagination import PaginatedResponse
from app.schemas.user import PublicUser, UserCreate, UserProfile, UserUpdate
from app.services import relationship as relationship_service
from app.services import user as user_service
from app.services.session import SessionManager

router = APIRouter(prefix="/users", tags=["users"])


@router.post("")
async def signup(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
):
    """
    Sign up. The new account stays inactive until the emailed link is followed.

    Invalid input comes back as 422 with a message list per field.
    """
    await user_service.signup(db, user_data)
    session.flash("info", "Please check your email to activate your account.")
    return RedirectResponse(settings.root_url, status_code=status.HTTP_303_SEE_OTHER)


@router.get("", response_model=PaginatedResponse[PublicUser])
def list_users(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int | None = Query(None, ge=1, le=1000, description="Number of items per page"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_login),
):
    """List activated users. Requires login."""
    page_size = page_size or settings.users_page_size
    users, total = user_service.get_users(db, page=page, page_size=page_size)
    return PaginatedResponse(
        items=[PublicUser.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{user_id}", response_model=UserProfile)
def show_user(
    user_id: int,
    page: int = Query(1, ge=1, description="Micropost page number (1-indexed)"),
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
):
    """
    Show a user's profile. Public.

    - is_self tells the viewer whether this is their own profile
    - Unknown or not yet activated users redirect home with a message
    """
    return user_service.get_profile(
        db, user_id, session, page=page, page_size=settings.feed_page_size
    )


@router.patch("/{user_id}")
def update_user(
    request: Request,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
    user: UserModel = Depends(require_correct_user),
):
    """
    Update your own profile. Anyone else is redirected home.

    Leave password blank to keep the current one.
    """
    user = user_service.update_user(db, user, user_data)
    session.flash("success", "Your profile was successfully updated.")
    return RedirectResponse(
        str(request.url_for("show_user", user_id=user.id)),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.delete("/{user_id}")
def delete_user(
    request: Request,
    user_id: int,
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
    current_user: UserModel = Depends(require_admin),
):
    """Delete a user, their microposts and their follow edges. Admin only."""
    user_service.delete_user(db, user_id)
    session.flash("success", "User deleted")
    return RedirectResponse(
        str(request.url_for("list_users")), status_code=status.HTTP_303_SEE_OTHER
    )


@router.get("/{user_id}/following", response_model=PaginatedResponse[PublicUser])
def list_following(
    user_id: int,
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_login),
):
    """Users this user follows. Requires login."""
    page_size = settings.users_page_size
    users, total = relationship_service.get_following(db, user_id, page=page, page_size=page_size)
    return PaginatedResponse(
        items=[PublicUser.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/{user_id}/followers", response_model=PaginatedResponse[PublicUser])
def list_followers(
    user_id: int,
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_login),
):
    """Users following this user. Requires login."""
    page_size = settings.users_page_size
    users, total = relationship_service.get_followers(db, user_id, page=page, page_size=page_size)
    return PaginatedResponse(
        items=[PublicUser.model_validate(user) for user in users],
        total=total,
        page=page,
        page_size=page_size,
    )
