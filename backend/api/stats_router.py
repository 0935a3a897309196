"""API routes for learner statistics and dashboard data."""

import logging
from datetime import date, datetime, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import LearnerStatsResponse
from backend.config import utcnow
from backend.database import get_session
from backend.models.card import Card
from backend.models.review_log import ReviewLog
from backend.srs.quota import day_window, local_date
from backend.srs.service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])

# Days of history loaded per query when walking back through a streak
STREAK_WINDOW_DAYS = 366


@router.get("/{learner_id}", response_model=LearnerStatsResponse)
async def get_learner_stats(
    learner_id: int,
    db: AsyncSession = Depends(get_session),
) -> LearnerStatsResponse:
    """Get overall statistics for a learner."""
    now = utcnow()
    quota = await ReviewService(db).quota_config(learner_id)
    today = local_date(now, quota.timezone)
    live = and_(Card.learner_id == learner_id, Card.is_deleted.is_(False))

    # Cards by status
    status_stmt = select(Card.status, func.count(Card.id)).where(live).group_by(Card.status)
    by_status = {status: count for status, count in (await db.execute(status_stmt)).all()}

    # Due cards (previously seen, due today or earlier)
    due_stmt = select(func.count(Card.id)).where(
        and_(live, Card.status != "new", Card.due_date <= today)
    )
    cards_due = (await db.execute(due_stmt)).scalar() or 0

    # Reviews per window, counted from the start of the learner's local day
    day_start, _ = day_window(today, quota.timezone)
    reviews_today = await _count_reviews_since(db, learner_id, day_start)
    reviews_week = await _count_reviews_since(db, learner_id, day_start - timedelta(days=6))
    reviews_month = await _count_reviews_since(db, learner_id, day_start - timedelta(days=29))

    totals_stmt = select(func.count(ReviewLog.id), func.avg(ReviewLog.rating)).where(
        ReviewLog.learner_id == learner_id
    )
    total_reviews, average_rating = (await db.execute(totals_stmt)).one()

    streak_days = await _calculate_streak(db, learner_id, today, quota.timezone)

    return LearnerStatsResponse(
        total_cards=sum(by_status.values()),
        cards_new=by_status.get("new", 0),
        cards_learning=by_status.get("learning", 0),
        cards_review=by_status.get("review", 0),
        cards_due=cards_due,
        reviews_today=reviews_today,
        reviews_week=reviews_week,
        reviews_month=reviews_month,
        total_reviews=total_reviews or 0,
        average_rating=round(average_rating, 2) if average_rating is not None else None,
        streak_days=streak_days,
    )


async def _count_reviews_since(db: AsyncSession, learner_id: int, since: datetime) -> int:
    stmt = select(func.count(ReviewLog.id)).where(
        and_(ReviewLog.learner_id == learner_id, ReviewLog.reviewed_at >= since)
    )
    return (await db.execute(stmt)).scalar() or 0


async def _calculate_streak(
    db: AsyncSession,
    learner_id: int,
    today: date,
    tz: str | None,
) -> int:
    """Calculate the number of consecutive days, ending today, the learner has reviewed.

    A streak that ended yesterday still counts until today is over. History is
    read one window at a time, walking back only while the streak is unbroken.
    """
    streak = 0
    cursor: date | None = None
    window_end = today

    while True:
        window_start = window_end - timedelta(days=STREAK_WINDOW_DAYS - 1)
        since, _ = day_window(window_start, tz)
        _, until = day_window(window_end, tz)
        stmt = select(ReviewLog.reviewed_at).where(
            and_(
                ReviewLog.learner_id == learner_id,
                ReviewLog.reviewed_at >= since,
                ReviewLog.reviewed_at < until,
            )
        )
        result = await db.execute(stmt)
        days = {local_date(reviewed_at, tz) for (reviewed_at,) in result.all()}

        if cursor is None:
            if not days:
                return 0
            cursor = today if today in days else today - timedelta(days=1)

        while cursor >= window_start and cursor in days:
            streak += 1
            cursor -= timedelta(days=1)

        if cursor >= window_start:
            return streak
        window_end = window_start - timedelta(days=1)
