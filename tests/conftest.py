"""Shared fixtures: a throwaway SQLite database and card/learner builders."""

import os
import tempfile
from pathlib import Path

# Must be set before backend.config is imported anywhere
_TEST_DB = Path(tempfile.mkdtemp(prefix="flashcards-test-")) / "test.db"
os.environ["FLASHCARDS_DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB}"

from collections.abc import AsyncGenerator  # noqa: E402
from datetime import date, datetime  # noqa: E402

import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from backend.database import async_session, engine  # noqa: E402
from backend.models import Base, Card, Learner  # noqa: E402


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on freshly created tables, dropped afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def make_learner(
    session: AsyncSession,
    daily_new_limit: int | None = 5,
    daily_review_limit: int | None = 10,
    timezone: str | None = None,
) -> Learner:
    learner = Learner(
        name="Test",
        daily_new_limit=daily_new_limit,
        daily_review_limit=daily_review_limit,
        timezone=timezone,
    )
    session.add(learner)
    await session.commit()
    await session.refresh(learner)
    return learner


async def make_card(
    session: AsyncSession,
    learner_id: int,
    front: str = "front",
    status: str = "new",
    interval: int = 0,
    ease: float = 2.5,
    due_date: date | None = None,
    is_deleted: bool = False,
    created_at: datetime | None = None,
) -> Card:
    card = Card(
        learner_id=learner_id,
        front=front,
        back=f"back of {front}",
        status=status,
        interval=interval,
        ease=ease,
        due_date=due_date,
        is_deleted=is_deleted,
    )
    if created_at is not None:
        card.created_at = created_at
    session.add(card)
    await session.commit()
    await session.refresh(card)
    return card
