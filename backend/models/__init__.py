"""SQLAlchemy ORM models for the flashcards database."""

from backend.models.base import Base
from backend.models.card import Card
from backend.models.learner import Learner
from backend.models.review_log import ReviewLog

__all__ = ["Base", "Card", "Learner", "ReviewLog"]
