from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.models.user import utcnow


class Relationship(Base):
    """A directed follow edge: follower -> followed."""

    __tablename__ = "relationships"
    __table_args__ = (
        UniqueConstraint("follower_id", "followed_id", name="uq_relationships_follower_followed"),
        CheckConstraint("follower_id <> followed_id", name="ck_relationships_no_self_follow"),
    )

    id = Column(Integer, primary_key=True, index=True)
    follower_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    followed_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationships
    follower = relationship(
        "User", foreign_keys=[follower_id], back_populates="active_relationships"
    )
    followed = relationship(
        "User", foreign_keys=[followed_id], back_populates="passive_relationships"
    )
