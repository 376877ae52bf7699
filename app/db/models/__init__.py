from app.db.models.user import User
from app.db.models.micropost import Micropost
from app.db.models.relationship import Relationship

__all__ = ["User", "Micropost", "Relationship"]
