from pydantic import BaseModel

from app.schemas.micropost import FeedItem
from app.schemas.pagination import PaginatedResponse
from app.schemas.user import User


class Flash(BaseModel):
    kind: str
    message: str


class SessionState(BaseModel):
    """The signals a renderer needs: who is logged in and any pending message."""

    logged_in: bool
    current_user: User | None = None
    flash: Flash | None = None


class Home(SessionState):
    feed: PaginatedResponse[FeedItem] | None = None
