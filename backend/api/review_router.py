"""API routes for due queues and review submission."""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import (
    CardResponse,
    DailyLimitsResponse,
    DueQueueResponse,
    HistoryResponse,
    IntervalPreview,
    LimitResponse,
    PreviewResponse,
    QueueStatsResponse,
    ReviewRequest,
    ReviewResponse,
)
from backend.database import get_session
from backend.srs.errors import CardNotFound, InvalidRating, VersionConflict
from backend.srs.quota import LimitStatus
from backend.srs.scheduler import format_interval
from backend.srs.service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.get("/queue/{learner_id}", response_model=DueQueueResponse)
async def due_queue(
    learner_id: int,
    today: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> DueQueueResponse:
    """Get the cards due for a learner, capped by their daily limits."""
    service = ReviewService(db)
    today = today or await service.today(learner_id)
    queue = await service.get_due_queue(learner_id, today)

    s = queue.stats
    return DueQueueResponse(
        learner_id=learner_id,
        today=today,
        review_cards=[CardResponse.model_validate(c) for c in queue.review_cards],
        new_cards=[CardResponse.model_validate(c) for c in queue.new_cards],
        total=queue.total,
        stats=QueueStatsResponse(
            new_studied=s.new_studied,
            new_remaining=s.new_remaining,
            review_studied=s.review_studied,
            review_remaining=s.review_remaining,
            total_studied=s.total_studied,
            total_remaining=s.total_remaining,
        ),
    )


@router.post("/{card_id}", response_model=ReviewResponse)
async def submit_review(
    card_id: int,
    request: ReviewRequest,
    db: AsyncSession = Depends(get_session),
) -> ReviewResponse:
    """Rate a card and return its new schedule."""
    service = ReviewService(db)
    try:
        card, entry = await service.submit_review_with_retry(
            card_id, request.learner_id, request.rating
        )
    except InvalidRating as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except CardNotFound as exc:
        raise HTTPException(status_code=404, detail="Card not found") from exc
    except VersionConflict as exc:
        raise HTTPException(
            status_code=409, detail="Card was updated concurrently, reload and retry"
        ) from exc

    return ReviewResponse(
        card=CardResponse.model_validate(card),
        history=HistoryResponse(
            card_id=entry.card_id,
            learner_id=entry.learner_id,
            rating=int(entry.rating),
            old_interval=entry.old_interval,
            new_interval=entry.new_interval,
            old_ease=entry.old_ease,
            new_ease=entry.new_ease,
            reviewed_at=entry.reviewed_at,
        ),
    )


@router.get("/preview/{card_id}", response_model=PreviewResponse)
async def preview_intervals(
    card_id: int,
    learner_id: int,
    today: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> PreviewResponse:
    """Show the interval each rating button would give the card."""
    service = ReviewService(db)
    try:
        intervals = await service.preview(card_id, learner_id, today)
    except CardNotFound as exc:
        raise HTTPException(status_code=404, detail="Card not found") from exc

    return PreviewResponse(
        card_id=card_id,
        intervals=[
            IntervalPreview(
                rating=int(rating),
                label=rating.name.capitalize(),
                interval_days=days,
                display=format_interval(days),
            )
            for rating, days in intervals.items()
        ],
    )


def _limit(status: LimitStatus) -> LimitResponse:
    return LimitResponse(
        studied=status.studied,
        limit=status.limit,
        remaining=status.remaining,
        reached_limit=status.reached,
    )


@router.get("/limits/{learner_id}", response_model=DailyLimitsResponse)
async def daily_limits(
    learner_id: int,
    today: date | None = None,
    db: AsyncSession = Depends(get_session),
) -> DailyLimitsResponse:
    """Report how many new and review cards the learner has used today."""
    service = ReviewService(db)
    today = today or await service.today(learner_id)
    limits = await service.daily_limits(learner_id, today)
    return DailyLimitsResponse(
        learner_id=learner_id,
        today=today,
        new_cards=_limit(limits.new_cards),
        review_cards=_limit(limits.review_cards),
        all_limits_reached=limits.all_reached,
    )
