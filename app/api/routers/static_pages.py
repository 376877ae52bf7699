from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_session_manager
from app.core.config import settings
from app.schemas.pagination import PaginatedResponse
from app.schemas.session import Flash, Home
from app.schemas.user import User
from app.services import feed as feed_service
from app.services.session import SessionManager

router = APIRouter(tags=["home"])


@router.get("/home", response_model=Home)
def home(
    page: int = Query(1, ge=1, description="Feed page number (1-indexed)"),
    db: Session = Depends(get_db),
    session: SessionManager = Depends(get_session_manager),
):
    """
    Home page data. Anonymous visitors only get the login state and flash;
    logged-in users also get a page of their feed.
    """
    user = session.current_user()
    flash = session.pop_flash()
    home_data = Home(
        logged_in=user is not None,
        current_user=User.model_validate(user) if user else None,
        flash=Flash(**flash) if flash else None,
    )
    if user is not None:
        page_size = settings.feed_page_size
        items, total = feed_service.feed(db, user, page=page, page_size=page_size)
        home_data.feed = PaginatedResponse(
            items=items, total=total, page=page, page_size=page_size
        )
    return home_data
