"""Pydantic schemas for API request/response models."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, StrictInt

# --- Cards ---


class CardResponse(BaseModel):
    """A card with its current scheduling state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    learner_id: int
    front: str
    back: str
    status: str  # new, learning, review
    interval: int
    ease: float
    due_date: date | None
    version: int


# --- Queue ---


class QueueStatsResponse(BaseModel):
    new_studied: int
    new_remaining: int
    review_studied: int
    review_remaining: int
    total_studied: int
    total_remaining: int


class DueQueueResponse(BaseModel):
    """The cards to present next, reviews first, then new cards."""

    learner_id: int
    today: date
    review_cards: list[CardResponse]
    new_cards: list[CardResponse]
    total: int
    stats: QueueStatsResponse


# --- Reviews ---


class ReviewRequest(BaseModel):
    """Request to rate a card."""

    learner_id: int
    rating: StrictInt  # 1=Again, 2=Hard, 3=Good, 4=Easy; no bool or string coercion


class HistoryResponse(BaseModel):
    card_id: int
    learner_id: int
    rating: int
    old_interval: int
    new_interval: int
    old_ease: float
    new_ease: float
    reviewed_at: datetime


class ReviewResponse(BaseModel):
    """Response after a review with the card's new schedule."""

    card: CardResponse
    history: HistoryResponse


class IntervalPreview(BaseModel):
    rating: int
    label: str  # Again, Hard, Good, Easy
    interval_days: int
    display: str  # e.g. "now", "4d", "3w"


class PreviewResponse(BaseModel):
    card_id: int
    intervals: list[IntervalPreview]


# --- Limits ---


class LimitResponse(BaseModel):
    studied: int
    limit: int
    remaining: int
    reached_limit: bool


class DailyLimitsResponse(BaseModel):
    """How much of each daily cap the learner has used."""

    learner_id: int
    today: date
    new_cards: LimitResponse
    review_cards: LimitResponse
    all_limits_reached: bool


# --- Stats ---


class LearnerStatsResponse(BaseModel):
    """Overall statistics for a learner."""

    total_cards: int
    cards_new: int
    cards_learning: int
    cards_review: int
    cards_due: int
    reviews_today: int
    reviews_week: int
    reviews_month: int
    total_reviews: int
    average_rating: float | None
    streak_days: int
