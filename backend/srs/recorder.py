"""Review history construction.

Every scheduling transition produces exactly one immutable history entry.
This module is the only place ``ReviewLog`` rows are built; storage only ever
appends them.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from backend.models.review_log import ReviewLog
from backend.srs.scheduler import Rating, StateDelta


@dataclass(frozen=True)
class HistoryEntry:
    """One review event: who reviewed which card, and what it did to the schedule."""

    card_id: int
    learner_id: int
    rating: Rating
    old_interval: int
    new_interval: int
    old_ease: float
    new_ease: float
    reviewed_at: datetime  # Naive UTC

    @property
    def was_new(self) -> bool:
        """True if this review was the card's first exposure."""
        return self.old_interval == 0

    def to_review_log(self) -> ReviewLog:
        return ReviewLog(
            card_id=self.card_id,
            learner_id=self.learner_id,
            rating=int(self.rating),
            old_interval=self.old_interval,
            new_interval=self.new_interval,
            old_ease=self.old_ease,
            new_ease=self.new_ease,
            reviewed_at=self.reviewed_at,
        )

    @classmethod
    def from_review_log(cls, log: ReviewLog) -> "HistoryEntry":
        return cls(
            card_id=log.card_id,
            learner_id=log.learner_id,
            rating=Rating(log.rating),
            old_interval=log.old_interval,
            new_interval=log.new_interval,
            old_ease=log.old_ease,
            new_ease=log.new_ease,
            reviewed_at=log.reviewed_at,
        )


def record(
    card_id: int,
    learner_id: int,
    delta: StateDelta,
    reviewed_at: datetime,
) -> HistoryEntry:
    """Build the history entry for a transition.

    Aware timestamps are converted to naive UTC so they compare cleanly with
    what SQLite hands back.
    """
    if reviewed_at.tzinfo is not None:
        reviewed_at = reviewed_at.astimezone(UTC).replace(tzinfo=None)
    return HistoryEntry(
        card_id=card_id,
        learner_id=learner_id,
        rating=delta.rating,
        old_interval=delta.old_interval,
        new_interval=delta.new_interval,
        old_ease=delta.old_ease,
        new_ease=delta.new_ease,
        reviewed_at=reviewed_at,
    )
