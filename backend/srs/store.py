"""SQLAlchemy-backed storage for cards, review history and quota settings.

All blocking work lives here; the scheduler, recorder, quota tally and queue
builder only ever see values loaded by this class.
"""

import logging
from datetime import datetime

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import settings, utcnow
from backend.models.card import Card
from backend.models.learner import Learner
from backend.models.review_log import ReviewLog
from backend.srs.errors import CardNotFound, QuotaConfigMissing, VersionConflict
from backend.srs.quota import QuotaConfig
from backend.srs.recorder import HistoryEntry
from backend.srs.scheduler import CardState

logger = logging.getLogger(__name__)


class CardStore:
    """Storage operations used by the review service, bound to one session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load_cards(self, learner_id: int, include_deleted: bool = False) -> list[Card]:
        """Return a learner's cards in creation order."""
        stmt = select(Card).where(Card.learner_id == learner_id)
        if not include_deleted:
            stmt = stmt.where(Card.is_deleted.is_(False))
        stmt = stmt.order_by(Card.created_at.asc(), Card.id.asc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_card(self, card_id: int, learner_id: int) -> Card:
        """Fetch a live card owned by the learner.

        Raises:
            CardNotFound: If the card does not exist, belongs to someone else,
                or has been soft-deleted.
        """
        stmt = (
            select(Card)
            .where(
                and_(
                    Card.id == card_id,
                    Card.learner_id == learner_id,
                    Card.is_deleted.is_(False),
                )
            )
            .execution_options(populate_existing=True)  # always read the stored version
        )
        card = (await self.session.execute(stmt)).scalar_one_or_none()
        if card is None:
            raise CardNotFound(card_id, learner_id)
        return card

    async def save_card(self, card_id: int, expected_version: int, state: CardState) -> int:
        """Write a new scheduling state if the card is still at ``expected_version``.

        Returns:
            The card's new version.

        Raises:
            VersionConflict: If another writer saved the card first.
        """
        stmt = (
            update(Card)
            .where(and_(Card.id == card_id, Card.version == expected_version))
            .values(
                status=state.status.value,
                interval=state.interval,
                ease=state.ease,
                due_date=state.due_date,
                version=expected_version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            logger.warning("Version conflict on card %d (expected v%d)", card_id, expected_version)
            raise VersionConflict(card_id, expected_version)
        return expected_version + 1

    async def append_history(self, entry: HistoryEntry) -> ReviewLog:
        log = entry.to_review_log()
        self.session.add(log)
        await self.session.flush()
        return log

    async def query_history(
        self,
        learner_id: int,
        start: datetime,
        end: datetime,
    ) -> list[HistoryEntry]:
        """Return a learner's history entries with ``start <= reviewed_at < end``."""
        stmt = (
            select(ReviewLog)
            .where(
                and_(
                    ReviewLog.learner_id == learner_id,
                    ReviewLog.reviewed_at >= start,
                    ReviewLog.reviewed_at < end,
                )
            )
            .order_by(ReviewLog.reviewed_at.asc(), ReviewLog.id.asc())
        )
        result = await self.session.execute(stmt)
        return [HistoryEntry.from_review_log(log) for log in result.scalars().all()]

    async def load_quota_config(self, learner_id: int) -> QuotaConfig:
        """Read a learner's daily limits.

        Raises:
            QuotaConfigMissing: If the learner is unknown or has no limits set.
        """
        learner = await self.session.get(Learner, learner_id)
        if learner is None or learner.daily_new_limit is None or learner.daily_review_limit is None:
            raise QuotaConfigMissing(learner_id)
        defaults = QuotaConfig()
        return QuotaConfig(
            daily_new_limit=learner.daily_new_limit,
            daily_review_limit=learner.daily_review_limit,
            timezone=learner.timezone or defaults.timezone,
        )

    async def learner_timezone(self, learner_id: int) -> str | None:
        learner = await self.session.get(Learner, learner_id)
        return learner.timezone if learner is not None else None

    async def add_card(self, learner_id: int, front: str, back: str) -> Card:
        """Create a new, never-reviewed card."""
        card = Card(
            learner_id=learner_id,
            front=front,
            back=back,
            status="new",
            interval=0,
            ease=settings.default_ease,
            due_date=None,
        )
        self.session.add(card)
        await self.session.flush()
        return card
