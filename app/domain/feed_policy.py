from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FeedPolicy:
    """Defines which microposts make up a user's feed.

    Semantics (intentionally centralized):
    - every post authored by the user
    - every post authored by a user they follow
    - plus at most community_limit of the most recent posts by anyone else,
      so community posts fill in but never displace followed content

    The three sets are disjoint by author, so the union has no duplicates.
    """

    user_id: int
    community_limit: int

    def covers_author(self, author_id: int, followed_ids: set[int]) -> bool:
        """True if every post by this author belongs in the feed."""
        return author_id == self.user_id or author_id in followed_ids

    def sqlalchemy_predicate(self, *, micropost_model, followed_ids):
        """Build a SQLAlchemy predicate implementing the feed rule.

        followed_ids is a subquery selecting the followed user ids. The
        community part selects from an alias so it is not correlated with
        the outer microposts query.
        """
        from sqlalchemy import and_, or_, select
        from sqlalchemy.orm import aliased

        own_or_followed = or_(
            micropost_model.user_id == self.user_id,
            micropost_model.user_id.in_(followed_ids),
        )
        if self.community_limit <= 0:
            return own_or_followed

        other = aliased(micropost_model)
        community_ids = (
            select(other.id)
            .where(
                and_(
                    other.user_id != self.user_id,
                    other.user_id.not_in(followed_ids),
                )
            )
            .order_by(other.created_at.desc(), other.id.desc())
            .limit(self.community_limit)
        )
        return or_(own_or_followed, micropost_model.id.in_(community_ids))
