from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_login
from app.db.models.user import User as UserModel
from app.services import relationship as relationship_service

router = APIRouter(prefix="/relationships", tags=["relationships"])


@router.post("")
def follow_user(
    request: Request,
    followed_id: int | None = Form(None),
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_login),
):
    """
    Follow a user (form field followed_id). Requires login.

    Following someone already followed changes nothing. Following yourself,
    a missing id or an unknown user redirects home with a message.
    """
    user = relationship_service.follow_user_by_id(db, current_user, followed_id)
    return RedirectResponse(
        str(request.url_for("show_user", user_id=user.id)),
        status_code=status.HTTP_303_SEE_OTHER,
    )


@router.delete("/{relationship_id}")
def unfollow_user(
    request: Request,
    relationship_id: int,
    db: Session = Depends(get_db),
    current_user: UserModel = Depends(require_login),
):
    """Stop following, by relationship id. Only your own relationships can be removed."""
    user = relationship_service.unfollow_by_relationship_id(db, current_user, relationship_id)
    return RedirectResponse(
        str(request.url_for("show_user", user_id=user.id)),
        status_code=status.HTTP_303_SEE_OTHER,
    )
