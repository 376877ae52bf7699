"""Domain-level policies and business rules.

This package contains logic that defines *what* the business rules are,
independent from *where* they are applied (services, repositories, etc.).
"""

from app.domain.feed_policy import FeedPolicy

__all__ = ["FeedPolicy"]
