"""Flashcard model carrying the learner's scheduling state."""

from datetime import date

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.config import settings
from backend.models.base import Base, TimestampMixin


class Card(Base, TimestampMixin):
    """A front/back fact with SM-2 style scheduling state for one learner."""

    __tablename__ = "cards"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    learner_id: Mapped[int] = mapped_column(ForeignKey("learners.id"), nullable=False, index=True)
    front: Mapped[str] = mapped_column(Text, nullable=False)
    back: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="new"
    )  # new, learning, review
    interval: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # days
    ease: Mapped[float] = mapped_column(Float, nullable=False, default=lambda: settings.default_ease)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)  # None until first review
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # bumped on every save

    learner: Mapped["Learner"] = relationship(back_populates="cards")  # type: ignore[name-defined] # noqa: F821
    review_logs: Mapped[list["ReviewLog"]] = relationship(back_populates="card")  # type: ignore[name-defined] # noqa: F821
