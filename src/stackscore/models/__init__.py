"""SQLAlchemy ORM models."""

from stackscore.models.analysis import Analysis
from stackscore.models.base import Base

__all__ = [
    "Analysis",
    "Base",
]
