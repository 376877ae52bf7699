from sqlalchemy.orm import Session

from app.db.base import is_storable_id
from app.db.models.micropost import Micropost as MicropostModel


def get_micropost_by_id(db: Session, micropost_id: int) -> MicropostModel | None:
    """Get a micropost by ID."""
    if not is_storable_id(micropost_id):
        return None
    return db.query(MicropostModel).filter(MicropostModel.id == micropost_id).first()


def create_micropost(db: Session, user_id: int, content: str) -> MicropostModel:
    """Create a new micropost. Pure data access - no business logic."""
    db_micropost = MicropostModel(user_id=user_id, content=content)
    db.add(db_micropost)
    db.commit()
    db.refresh(db_micropost)
    return db_micropost


def delete_micropost(db: Session, micropost: MicropostModel) -> None:
    db.delete(micropost)
    db.commit()


def get_microposts_by_user_id_paginated(
    db: Session, user_id: int, page: int = 1, page_size: int = 30
) -> tuple[list[MicropostModel], int]:
    """Get one user's microposts, newest first."""
    query = db.query(MicropostModel).filter(MicropostModel.user_id == user_id)
    total = query.count()
    skip = (page - 1) * page_size
    microposts = (
        query.order_by(MicropostModel.created_at.desc(), MicropostModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return microposts, total


def get_feed_paginated(
    db: Session, predicate, page: int = 1, page_size: int = 30
) -> tuple[list[MicropostModel], int]:
    """
    Get microposts matching a feed predicate, newest first.

    The predicate is built by FeedPolicy; this function only runs the query.
    """
    query = db.query(MicropostModel).filter(predicate)
    total = query.count()
    skip = (page - 1) * page_size
    microposts = (
        query.order_by(MicropostModel.created_at.desc(), MicropostModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return microposts, total
