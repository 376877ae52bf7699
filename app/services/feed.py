from sqlalchemy.orm import Session

import app.repositories.micropost as micropost_repo
import app.repositories.relationship as relationship_repo
from app.core.config import settings
from app.db.models.micropost import Micropost as MicropostModel
from app.db.models.user import User as UserModel
from app.domain.feed_policy import FeedPolicy
from app.schemas.micropost import FeedItem


def feed(
    db: Session, user: UserModel, page: int = 1, page_size: int = 30
) -> tuple[list[FeedItem], int]:
    """
    Get a page of the user's feed, newest first.

    Own and followed posts are always included; up to FEED_COMMUNITY_LIMIT
    recent posts by other users are mixed in and flagged as community posts.

    Returns:
        Tuple of (list of feed items, total count)
    """
    policy = FeedPolicy(user_id=user.id, community_limit=settings.feed_community_limit)
    predicate = policy.sqlalchemy_predicate(
        micropost_model=MicropostModel,
        followed_ids=relationship_repo.followed_ids_select(user.id),
    )
    microposts, total = micropost_repo.get_feed_paginated(
        db, predicate, page=page, page_size=page_size
    )

    followed_ids = relationship_repo.get_followed_ids(db, user.id)
    items = [
        FeedItem(
            id=m.id,
            user_id=m.user_id,
            content=m.content,
            created_at=m.created_at,
            community=not policy.covers_author(m.user_id, followed_ids),
        )
        for m in microposts
    ]
    return items, total
