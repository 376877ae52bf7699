from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.base import is_storable_id
from app.db.models.relationship import Relationship as RelationshipModel
from app.db.models.user import User as UserModel


def get_relationship_by_id(db: Session, relationship_id: int) -> RelationshipModel | None:
    """Get a relationship by ID."""
    if not is_storable_id(relationship_id):
        return None
    return (
        db.query(RelationshipModel)
        .filter(RelationshipModel.id == relationship_id)
        .first()
    )


def get_relationship(
    db: Session, follower_id: int, followed_id: int
) -> RelationshipModel | None:
    """Get the edge follower -> followed, if any."""
    return (
        db.query(RelationshipModel)
        .filter(
            RelationshipModel.follower_id == follower_id,
            RelationshipModel.followed_id == followed_id,
        )
        .first()
    )


def create_relationship(db: Session, follower_id: int, followed_id: int) -> RelationshipModel:
    """
    Insert a follow edge. Pure data access - no business logic.

    Raises sqlalchemy.exc.IntegrityError if the edge already exists.
    """
    db_relationship = RelationshipModel(follower_id=follower_id, followed_id=followed_id)
    db.add(db_relationship)
    db.commit()
    db.refresh(db_relationship)
    return db_relationship


def delete_relationship(db: Session, relationship: RelationshipModel) -> None:
    db.delete(relationship)
    db.commit()


def count_relationships(db: Session) -> int:
    return db.query(RelationshipModel).count()


def count_following(db: Session, user_id: int) -> int:
    return (
        db.query(RelationshipModel)
        .filter(RelationshipModel.follower_id == user_id)
        .count()
    )


def count_followers(db: Session, user_id: int) -> int:
    return (
        db.query(RelationshipModel)
        .filter(RelationshipModel.followed_id == user_id)
        .count()
    )


def followed_ids_select(user_id: int):
    """Select the ids of every user that user_id follows, for use in IN clauses."""
    return select(RelationshipModel.followed_id).where(
        RelationshipModel.follower_id == user_id
    )


def get_followed_ids(db: Session, user_id: int) -> set[int]:
    return set(db.scalars(followed_ids_select(user_id)).all())


def get_following_paginated(
    db: Session, user_id: int, page: int = 1, page_size: int = 30
) -> tuple[list[UserModel], int]:
    """Users that user_id follows, most recently followed first."""
    query = (
        db.query(UserModel)
        .join(RelationshipModel, RelationshipModel.followed_id == UserModel.id)
        .filter(RelationshipModel.follower_id == user_id)
    )
    total = query.count()
    skip = (page - 1) * page_size
    users = (
        query.order_by(RelationshipModel.id.desc()).offset(skip).limit(page_size).all()
    )
    return users, total


def get_followers_paginated(
    db: Session, user_id: int, page: int = 1, page_size: int = 30
) -> tuple[list[UserModel], int]:
    """Users following user_id, most recent first."""
    query = (
        db.query(UserModel)
        .join(RelationshipModel, RelationshipModel.follower_id == UserModel.id)
        .filter(RelationshipModel.followed_id == user_id)
    )
    total = query.count()
    skip = (page - 1) * page_size
    users = (
        query.order_by(RelationshipModel.id.desc()).offset(skip).limit(page_size).all()
    )
    return users, total
