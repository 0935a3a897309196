"""SM-2 style scheduling engine.

A two-component spaced repetition update: the interval grows multiplicatively
while the ease factor is adjusted separately, so one lapse does not wipe out
every ease gain a card has built up.

Key concepts:
- Interval: Days until the card should be shown again. 0 means "new" before
  the first review, and "show again this session" after a lapse. Capped at
  max_interval (100 years by default).
- Ease: Multiplier applied to the interval on a Good answer (default 2.5,
  never below the ease floor of 1.3).
- Status: new -> learning on the first non-Again answer, learning -> review
  once the interval reaches the graduation threshold (21 days). Again always
  sends the card back to learning.
- Rating: 1=Again, 2=Hard, 3=Good, 4=Easy
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

from backend.srs.errors import InvalidCardState, InvalidRating

if TYPE_CHECKING:
    from backend.config import Settings
    from backend.models.card import Card

logger = logging.getLogger(__name__)

DEFAULT_EASE = 2.5
EASE_FLOOR = 1.3

# Products like 10 * 1.2 come out as 12.000000000000002; round before ceil so
# float noise never adds a day.
_CEIL_PRECISION = 6
_EASE_PRECISION = 4


class Rating(IntEnum):
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class CardStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"


@dataclass(frozen=True)
class SchedulerParams:
    """Tunable policy constants. Defaults give the reference behaviour."""

    ease_floor: float = EASE_FLOOR
    default_ease: float = DEFAULT_EASE
    again_ease_penalty: float = 0.20
    hard_ease_penalty: float = 0.15
    easy_ease_bonus: float = 0.15
    hard_interval_multiplier: float = 1.2
    easy_interval_multiplier: float = 1.3
    hard_first_interval: int = 1
    good_first_interval: int = 1
    easy_first_interval: int = 4
    graduation_interval: int = 21
    max_interval: int = 36500

    @classmethod
    def from_settings(cls, settings: Settings) -> SchedulerParams:
        return cls(
            ease_floor=settings.ease_floor,
            default_ease=settings.default_ease,
            again_ease_penalty=settings.again_ease_penalty,
            hard_ease_penalty=settings.hard_ease_penalty,
            easy_ease_bonus=settings.easy_ease_bonus,
            hard_interval_multiplier=settings.hard_interval_multiplier,
            easy_interval_multiplier=settings.easy_interval_multiplier,
            hard_first_interval=settings.hard_first_interval,
            good_first_interval=settings.good_first_interval,
            easy_first_interval=settings.easy_first_interval,
            graduation_interval=settings.graduation_interval,
            max_interval=settings.max_interval,
        )


@dataclass(frozen=True)
class CardState:
    """The scheduling state of a card."""

    status: CardStatus
    interval: int  # Days until next presentation
    ease: float
    due_date: date | None  # None until the first review

    @classmethod
    def new(cls, ease: float = DEFAULT_EASE) -> CardState:
        return cls(status=CardStatus.NEW, interval=0, ease=ease, due_date=None)

    @classmethod
    def from_card(cls, card: Card) -> CardState:
        """Read the scheduling fields off a card row."""
        return cls(
            status=CardStatus(card.status),
            interval=card.interval,
            ease=card.ease,
            due_date=card.due_date,
        )


@dataclass(frozen=True)
class StateDelta:
    """The before/after numbers of one transition, as kept in review history."""

    rating: Rating
    old_interval: int
    new_interval: int
    old_ease: float
    new_ease: float

    @property
    def was_new(self) -> bool:
        return self.old_interval == 0


@dataclass(frozen=True)
class ReviewResult:
    """The result of applying a rating to a card state."""

    new_state: CardState
    delta: StateDelta

    @property
    def interval_days(self) -> int:
        return self.new_state.interval


def parse_rating(value: object) -> Rating:
    """Coerce an incoming rating to :class:`Rating`.

    Raises:
        InvalidRating: For anything other than the integers 1-4. Out-of-range
            values are rejected, never clamped.
    """
    if isinstance(value, Rating):
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRating(value)
    try:
        return Rating(value)
    except ValueError:
        raise InvalidRating(value) from None


def _ceil_days(value: float) -> int:
    return math.ceil(round(value, _CEIL_PRECISION))


class Scheduler:
    """Pure card-state transition function. Holds only its policy constants."""

    def __init__(self, params: SchedulerParams | None = None) -> None:
        self.params = params or SchedulerParams()

    def transition(self, state: CardState, rating: object, today: date) -> ReviewResult:
        """Apply a rating to a card state.

        Args:
            state: Current card state.
            rating: Review rating (1=Again, 2=Hard, 3=Good, 4=Easy).
            today: The learner's calendar date of the review.

        Returns:
            ReviewResult with the new state and the before/after delta.

        Raises:
            InvalidRating: If ``rating`` is not one of the four ratings.
            InvalidCardState: If the interval is negative or ease is below the floor.
        """
        rating = parse_rating(rating)
        self._check_state(state)

        new_interval = self._next_interval(state.interval, state.ease, rating)
        new_ease = self._next_ease(state.ease, rating)
        new_state = CardState(
            status=self._next_status(new_interval, rating),
            interval=new_interval,
            ease=new_ease,
            due_date=today + timedelta(days=new_interval),
        )
        delta = StateDelta(
            rating=rating,
            old_interval=state.interval,
            new_interval=new_interval,
            old_ease=state.ease,
            new_ease=new_ease,
        )
        logger.debug(
            "Transition %s: interval %d -> %d, ease %.2f -> %.2f, %s -> %s",
            rating.name,
            state.interval,
            new_interval,
            state.ease,
            new_ease,
            state.status.value,
            new_state.status.value,
        )
        return ReviewResult(new_state=new_state, delta=delta)

    def preview(self, state: CardState, today: date) -> dict[Rating, int]:
        """Return the interval each rating would give, for labelling rating buttons."""
        return {
            rating: self.transition(state, rating, today).new_state.interval
            for rating in Rating
        }

    def _check_state(self, state: CardState) -> None:
        if state.interval < 0:
            raise InvalidCardState(f"Interval must be >= 0, got {state.interval}")
        if round(state.ease, _EASE_PRECISION) < self.params.ease_floor:
            raise InvalidCardState(
                f"Ease {state.ease} is below the floor {self.params.ease_floor}"
            )

    def _next_interval(self, interval: int, ease: float, rating: Rating) -> int:
        p = self.params
        if rating == Rating.AGAIN:
            return 0
        if interval == 0:
            first = {
                Rating.HARD: p.hard_first_interval,
                Rating.GOOD: p.good_first_interval,
                Rating.EASY: p.easy_first_interval,
            }
            return first[rating]
        if rating == Rating.HARD:
            days = _ceil_days(interval * p.hard_interval_multiplier)
        elif rating == Rating.GOOD:
            days = _ceil_days(interval * ease)
        else:
            days = _ceil_days(interval * ease * p.easy_interval_multiplier)
        return min(days, p.max_interval)

    def _next_ease(self, ease: float, rating: Rating) -> float:
        p = self.params
        if rating == Rating.AGAIN:
            ease -= p.again_ease_penalty
        elif rating == Rating.HARD:
            ease -= p.hard_ease_penalty
        elif rating == Rating.EASY:
            ease += p.easy_ease_bonus
        return max(p.ease_floor, round(ease, _EASE_PRECISION))

    def _next_status(self, new_interval: int, rating: Rating) -> CardStatus:
        if rating == Rating.AGAIN or new_interval < self.params.graduation_interval:
            return CardStatus.LEARNING
        return CardStatus.REVIEW


def format_interval(days: int) -> str:
    """Render an interval compactly for a rating button: now, 3d, 2w, 4mo, 1.5y."""
    if days <= 0:
        return "now"
    if days < 14:
        return f"{days}d"
    if days < 60:
        return f"{round(days / 7)}w"
    if days < 365:
        return f"{round(days / 30)}mo"
    years = round(days / 365, 1)
    return f"{years:g}y"

