"""Daily quota accounting.

Counts are derived live from review history rather than kept in a running
counter. A review whose ``old_interval`` is 0 consumed a "new" slot, any
other review consumed a "review" slot. Each review event counts once, so a
card failed three times today uses three review slots.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from functools import lru_cache
from typing import Protocol
from zoneinfo import ZoneInfo

from backend.config import settings


class _HistoryLike(Protocol):
    old_interval: int
    reviewed_at: datetime


@dataclass(frozen=True)
class QuotaConfig:
    """A learner's daily caps and the time zone that defines their day."""

    daily_new_limit: int = settings.default_daily_new_limit
    daily_review_limit: int = settings.default_daily_review_limit
    timezone: str = settings.default_timezone


@dataclass(frozen=True)
class DailyCounts:
    new: int = 0
    review: int = 0

    @property
    def total(self) -> int:
        return self.new + self.review


@dataclass(frozen=True)
class LimitStatus:
    studied: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.studied)

    @property
    def reached(self) -> bool:
        return self.studied >= self.limit


@dataclass(frozen=True)
class DailyLimits:
    new_cards: LimitStatus
    review_cards: LimitStatus

    @property
    def all_reached(self) -> bool:
        return self.new_cards.reached and self.review_cards.reached


@lru_cache(maxsize=64)
def get_zone(name: str | None) -> tzinfo:
    """Resolve an IANA zone name. Empty or ``UTC`` needs no tz database."""
    if not name or name.upper() == "UTC":
        return UTC
    return ZoneInfo(name)


def local_date(moment: datetime, tz: str | None = None) -> date:
    """Return the calendar date of ``moment`` in ``tz``. Naive input is taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(get_zone(tz)).date()


def day_window(day: date, tz: str | None = None) -> tuple[datetime, datetime]:
    """Return the naive UTC ``[start, end)`` range covering ``day`` in ``tz``."""
    zone = get_zone(tz)
    start = datetime.combine(day, time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=zone)
    return (
        start.astimezone(UTC).replace(tzinfo=None),
        end.astimezone(UTC).replace(tzinfo=None),
    )


def tally(entries: Iterable[_HistoryLike], day: date, tz: str | None = None) -> DailyCounts:
    """Count the new and review slots consumed on ``day``.

    Entries from other days are ignored, so callers may pass a wider slice of
    history than a single day.
    """
    new = review = 0
    for entry in entries:
        if local_date(entry.reviewed_at, tz) != day:
            continue
        if entry.old_interval == 0:
            new += 1
        else:
            review += 1
    return DailyCounts(new=new, review=review)


def check_limits(counts: DailyCounts, quota: QuotaConfig) -> DailyLimits:
    """Summarize how much of each daily cap has been used."""
    return DailyLimits(
        new_cards=LimitStatus(studied=counts.new, limit=quota.daily_new_limit),
        review_cards=LimitStatus(studied=counts.review, limit=quota.daily_review_limit),
    )
