"""Review service.

The entry points the API and CLI call: build a learner's due queue, and
submit a rating for a card. Submitting runs the pure scheduler, records the
transition and commits the new card state together with its history entry in
one transaction, so a review either fully lands or not at all.
"""

import logging
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from backend.config import settings, utcnow
from backend.models.card import Card
from backend.srs.errors import QuotaConfigMissing, VersionConflict
from backend.srs.queue import DueQueue, build_queue
from backend.srs.quota import (
    DailyCounts,
    DailyLimits,
    QuotaConfig,
    check_limits,
    day_window,
    local_date,
    tally,
)
from backend.srs.recorder import HistoryEntry, record
from backend.srs.scheduler import CardState, Rating, Scheduler, SchedulerParams, parse_rating
from backend.srs.store import CardStore

logger = logging.getLogger(__name__)


def default_scheduler() -> Scheduler:
    return Scheduler(SchedulerParams.from_settings(settings))


class ReviewService:
    """Due queues and review submission for one database session."""

    def __init__(self, db: AsyncSession, scheduler: Scheduler | None = None) -> None:
        self.db = db
        self.store = CardStore(db)
        self.scheduler = scheduler or default_scheduler()

    async def quota_config(self, learner_id: int) -> QuotaConfig:
        """Return the learner's limits, or the configured defaults if they have none."""
        try:
            return await self.store.load_quota_config(learner_id)
        except QuotaConfigMissing:
            logger.info("No quota config for learner %d, using defaults", learner_id)
            timezone = await self.store.learner_timezone(learner_id)
            return QuotaConfig(timezone=timezone or settings.default_timezone)

    async def today(self, learner_id: int, now: datetime | None = None) -> date:
        """Return the learner's current calendar date in their time zone."""
        quota = await self.quota_config(learner_id)
        return local_date(now or utcnow(), quota.timezone)

    async def counts_for_day(
        self,
        learner_id: int,
        day: date,
        quota: QuotaConfig | None = None,
    ) -> DailyCounts:
        """Count the new and review slots the learner used on ``day``."""
        quota = quota or await self.quota_config(learner_id)
        start, end = day_window(day, quota.timezone)
        entries = await self.store.query_history(learner_id, start, end)
        return tally(entries, day, quota.timezone)

    async def get_due_queue(self, learner_id: int, today: date | None = None) -> DueQueue:
        """Build the learner's due queue for ``today`` (their local date if omitted)."""
        quota = await self.quota_config(learner_id)
        today = today or local_date(utcnow(), quota.timezone)
        counts = await self.counts_for_day(learner_id, today, quota)
        cards = await self.store.load_cards(learner_id)
        return build_queue(learner_id, today, cards, quota, counts)

    async def daily_limits(self, learner_id: int, today: date | None = None) -> DailyLimits:
        quota = await self.quota_config(learner_id)
        today = today or local_date(utcnow(), quota.timezone)
        counts = await self.counts_for_day(learner_id, today, quota)
        return check_limits(counts, quota)

    async def preview(
        self,
        card_id: int,
        learner_id: int,
        today: date | None = None,
    ) -> dict[Rating, int]:
        """Return the interval each rating would give the card, without saving anything."""
        card = await self.store.get_card(card_id, learner_id)
        today = today or await self.today(learner_id)
        return self.scheduler.preview(CardState.from_card(card), today)

    async def submit_review(
        self,
        card_id: int,
        learner_id: int,
        rating: object,
        now: datetime | None = None,
    ) -> tuple[Card, HistoryEntry]:
        """Apply a rating to a card and commit the result.

        Args:
            card_id: The card being reviewed.
            learner_id: The learner who owns the card.
            rating: 1=Again, 2=Hard, 3=Good, 4=Easy.
            now: When the review happened (defaults to utcnow). The learner's
                local date of this moment is the scheduling reference date.

        Returns:
            Tuple of (updated card, history entry).

        Raises:
            InvalidRating: Before anything is loaded or written.
            CardNotFound: If the card is missing, deleted or not the learner's.
            VersionConflict: If the card was saved by someone else meanwhile.
                Nothing is committed; reload and retry.
        """
        rating = parse_rating(rating)
        now = now or utcnow()

        try:
            card = await self.store.get_card(card_id, learner_id)
            quota = await self.quota_config(learner_id)
            state = CardState.from_card(card)
            result = self.scheduler.transition(state, rating, local_date(now, quota.timezone))
            entry = record(card.id, learner_id, result.delta, now)

            await self.store.save_card(card.id, card.version, result.new_state)
            await self.store.append_history(entry)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(card)
        logger.info(
            "Learner %d rated card %d %s: interval %d -> %d, due %s",
            learner_id,
            card.id,
            rating.name,
            entry.old_interval,
            entry.new_interval,
            card.due_date,
        )
        return card, entry

    @retry(
        retry=retry_if_exception_type(VersionConflict),
        stop=stop_after_attempt(settings.review_conflict_retries),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        reraise=True,
    )
    async def submit_review_with_retry(
        self,
        card_id: int,
        learner_id: int,
        rating: object,
        now: datetime | None = None,
    ) -> tuple[Card, HistoryEntry]:
        """Submit a review, reloading the card and retrying on version conflicts."""
        return await self.submit_review(card_id, learner_id, rating, now)
