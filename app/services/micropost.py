from sqlalchemy.orm import Session

import app.repositories.micropost as micropost_repo
from app.core.config import settings
from app.db.models.micropost import Micropost as MicropostModel
from app.db.models.user import User as UserModel
from app.errors import DomainValidationError, ForbiddenError

CONTENT_MAX_LENGTH = 140


def create_micropost(db: Session, user: UserModel, content: str | None) -> MicropostModel:
    """
    Post a micropost as user.

    Raises:
        DomainValidationError: If content is blank or longer than 140 characters
    """
    content = content or ""
    errors: dict[str, list[str]] = {}
    if not content.strip():
        errors.setdefault("content", []).append("can't be blank")
    if len(content) > CONTENT_MAX_LENGTH:
        errors.setdefault("content", []).append(
            f"is too long (maximum is {CONTENT_MAX_LENGTH} characters)"
        )
    if errors:
        raise DomainValidationError("Micropost is invalid", errors)
    return micropost_repo.create_micropost(db, user_id=user.id, content=content)


def delete_micropost(db: Session, user: UserModel, micropost_id: int) -> None:
    """
    Delete one of user's own microposts.

    Raises:
        ForbiddenError: If the micropost doesn't exist or belongs to someone else.
            Both cases redirect the same way so nothing is disclosed.
    """
    micropost = micropost_repo.get_micropost_by_id(db, micropost_id)
    if micropost is None or micropost.user_id != user.id:
        raise ForbiddenError(settings.root_url)
    micropost_repo.delete_micropost(db, micropost)
