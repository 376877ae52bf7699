from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_session_manager, require_login
from app.core.config import settings
from app.db.models.user import User as UserModel
from app.schemas.micropost import MicropostCreate
from app.services import micropost as micropost_service
from app.services.session import SessionManager

router = APIRouter(prefix="/microposts", tags=["microposts"])


@router.post("")
def create_micropost(
    micropost_data: MicropostCreate,
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
    current_user: UserModel = Depends(require_login),
):
    """Post a micropost (at most 140 characters). Requires login."""
    micropost_service.create_micropost(db, current_user, micropost_data.content)
    session.flash("success", "Micropost created!")
    return RedirectResponse(settings.root_url, status_code=status.HTTP_303_SEE_OTHER)


@router.delete("/{micropost_id}")
def delete_micropost(
    micropost_id: int,
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
    current_user: UserModel = Depends(require_login),
):
    """Delete one of your own microposts. Anything else redirects home."""
    micropost_service.delete_micropost(db, current_user, micropost_id)
    session.flash("success", "Micropost deleted")
    return RedirectResponse(settings.root_url, status_code=status.HTTP_303_SEE_OTHER)
