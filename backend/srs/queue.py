"""Due queue construction for review sessions.

Picks which cards a learner sees today: previously seen cards whose due date
has arrived come first (most overdue first), then never-seen cards in the
order they were created. Each group is capped by what is left of the
learner's daily allowance.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from backend.models.card import Card
from backend.srs.quota import DailyCounts, QuotaConfig
from backend.srs.scheduler import CardStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueueStats:
    """Where the learner stands against today's caps when the queue was built."""

    new_studied: int = 0
    new_remaining: int = 0
    review_studied: int = 0
    review_remaining: int = 0

    @property
    def total_studied(self) -> int:
        return self.new_studied + self.review_studied

    @property
    def total_remaining(self) -> int:
        return self.new_remaining + self.review_remaining


@dataclass
class DueQueue:
    """A snapshot of the cards to present. Rebuild it after each review."""

    review_cards: list[Card] = field(default_factory=list)
    new_cards: list[Card] = field(default_factory=list)
    stats: QueueStats = field(default_factory=QueueStats)

    @property
    def total(self) -> int:
        return len(self.review_cards) + len(self.new_cards)

    def cards(self) -> list[Card]:
        """Return the presentation order: all due reviews, then new cards."""
        return [*self.review_cards, *self.new_cards]


def is_new(card: Card) -> bool:
    return card.status == CardStatus.NEW.value


def is_due(card: Card, today: date) -> bool:
    return not is_new(card) and card.due_date is not None and card.due_date <= today


def _creation_key(card: Card) -> tuple[datetime, int]:
    return (card.created_at or datetime.min, card.id or 0)


def build_queue(
    learner_id: int,
    today: date,
    cards: Iterable[Card],
    quota: QuotaConfig,
    counts: DailyCounts,
) -> DueQueue:
    """Build the due queue for a learner.

    Args:
        learner_id: The learner to build the queue for. Cards belonging to
            anyone else are ignored.
        today: The learner's current calendar date.
        cards: The learner's cards, deleted ones included or not.
        quota: Daily new/review limits.
        counts: New/review slots already used today.

    Returns:
        A DueQueue. Empty when nothing qualifies or both allowances are spent.
    """
    review_allowance = max(0, quota.daily_review_limit - counts.review)
    new_allowance = max(0, quota.daily_new_limit - counts.new)

    due: list[Card] = []
    fresh: list[Card] = []
    for card in cards:
        if card.learner_id != learner_id or card.is_deleted:
            continue
        if is_new(card):
            fresh.append(card)
        elif is_due(card, today):
            due.append(card)

    due.sort(key=lambda c: (c.due_date, c.id))
    fresh.sort(key=_creation_key)

    queue = DueQueue(
        review_cards=due[:review_allowance],
        new_cards=fresh[:new_allowance],
        stats=QueueStats(
            new_studied=counts.new,
            new_remaining=new_allowance,
            review_studied=counts.review,
            review_remaining=review_allowance,
        ),
    )

    logger.info(
        "Built queue for learner %d on %s: %d due + %d new = %d total (%d/%d due, %d/%d new available)",
        learner_id,
        today.isoformat(),
        len(queue.review_cards),
        len(queue.new_cards),
        queue.total,
        len(queue.review_cards),
        len(due),
        len(queue.new_cards),
        len(fresh),
    )
    return queue
