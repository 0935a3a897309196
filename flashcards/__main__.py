"""CLI interface for Flashcards SRS.

Usage:
    python -m flashcards review              Start a review session
    python -m flashcards add "front" "back"  Add a new card
    python -m flashcards due                 Show how many cards are due
    python -m flashcards limits              Show today's new/review allowance
    python -m flashcards stats               Show your statistics
"""

import argparse
import asyncio
import logging

from sqlalchemy import and_, func, select

from backend.database import async_session, engine
from backend.models import Base
from backend.models.card import Card
from backend.models.learner import Learner
from backend.models.review_log import ReviewLog
from backend.srs.errors import InvalidRating, VersionConflict
from backend.srs.scheduler import CardState, Rating, format_interval
from backend.srs.service import ReviewService


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_learner() -> int:
    """Ensure there's a default learner and return the ID."""
    async with async_session() as db:
        stmt = select(Learner).order_by(Learner.id.asc()).limit(1)
        result = await db.execute(stmt)
        learner = result.scalar_one_or_none()
        if learner:
            return learner.id

        learner = Learner(name="Learner")
        db.add(learner)
        await db.commit()
        await db.refresh(learner)
        return learner.id


def _rating_prompt(previews: dict[Rating, int]) -> str:
    buttons = "  ".join(
        f"{int(r)}={r.name.capitalize()} ({format_interval(days)})" for r, days in previews.items()
    )
    return f"  {buttons}\n  Rate [1-4, q to quit]: "


async def cmd_review(args: argparse.Namespace) -> None:
    """Run an interactive review session."""
    await ensure_db()
    learner_id = await ensure_learner()

    async with async_session() as db:
        service = ReviewService(db)
        today = await service.today(learner_id)
        queue = await service.get_due_queue(learner_id, today)
        cards = queue.cards()
        if args.max_cards:
            cards = cards[: args.max_cards]

        if not cards:
            print("\nNo cards due for review. You're all caught up!")
            return

        print("\n  Review Session")
        print(f"  {len(queue.review_cards)} due + {len(queue.new_cards)} new = {queue.total} cards\n")

        reviewed = 0
        lapses = 0
        for i, card in enumerate(cards, 1):
            label = f"  [{i}/{len(cards)}]"
            if card.status == "new":
                label += " (NEW)"
            print(label)
            print(f"  {card.front}")
            if input("\n  Press Enter to show the answer (q to quit) ").strip().lower() == "q":
                print("\n  Session ended early.")
                break
            print(f"  {card.back}\n")

            previews = service.scheduler.preview(CardState.from_card(card), today)
            answer = input(_rating_prompt(previews)).strip()
            while True:
                if answer.lower() == "q":
                    break
                try:
                    card, entry = await service.submit_review_with_retry(
                        card.id, learner_id, int(answer) if answer.isdigit() else answer
                    )
                    break
                except InvalidRating:
                    answer = input("  Please enter 1, 2, 3 or 4: ").strip()
                except VersionConflict:
                    # Rolled back; every loaded card is now stale
                    print("  This card was updated elsewhere. Start a new session to continue.")
                    answer = "q"
                    break

            if answer.lower() == "q":
                print("\n  Session ended early.")
                break

            reviewed += 1
            if entry.rating == Rating.AGAIN:
                lapses += 1
            print(f"  Next review in {format_interval(entry.new_interval)}\n")

    print("\n  Session Complete!")
    print(f"  Reviewed: {reviewed}  Again: {lapses}\n")


async def cmd_add(args: argparse.Namespace) -> None:
    """Add a new card."""
    await ensure_db()
    learner_id = await ensure_learner()

    async with async_session() as db:
        existing = (
            await db.execute(
                select(Card).where(
                    and_(
                        Card.learner_id == learner_id,
                        Card.front == args.front,
                        Card.is_deleted.is_(False),
                    )
                )
            )
        ).scalar_one_or_none()

        if existing:
            print(f"  '{args.front}' already exists (id={existing.id}).")
            return

        card = await ReviewService(db).store.add_card(learner_id, args.front, args.back)
        await db.commit()
        print(f"  Added card {card.id} (ready for review):")
        print(f"    {card.front}  ->  {card.back}")


async def cmd_due(args: argparse.Namespace) -> None:
    """Show how many cards are due."""
    await ensure_db()
    learner_id = await ensure_learner()

    async with async_session() as db:
        queue = await ReviewService(db).get_due_queue(learner_id)

    print(f"  {len(queue.review_cards)} cards due, {len(queue.new_cards)} new cards available")


async def cmd_limits(args: argparse.Namespace) -> None:
    """Show today's usage against the daily limits."""
    await ensure_db()
    learner_id = await ensure_learner()

    async with async_session() as db:
        limits = await ReviewService(db).daily_limits(learner_id)

    for name, status in (("New", limits.new_cards), ("Review", limits.review_cards)):
        flag = "  (limit reached)" if status.reached else ""
        print(f"  {name + ':':<8} {status.studied}/{status.limit}, {status.remaining} left{flag}")


async def cmd_stats(args: argparse.Namespace) -> None:
    """Show learner statistics."""
    await ensure_db()
    learner_id = await ensure_learner()

    async with async_session() as db:
        status_stmt = (
            select(Card.status, func.count(Card.id))
            .where(and_(Card.learner_id == learner_id, Card.is_deleted.is_(False)))
            .group_by(Card.status)
        )
        by_status = {status: count for status, count in (await db.execute(status_stmt)).all()}

        reviews = (
            await db.execute(
                select(func.count(ReviewLog.id)).where(ReviewLog.learner_id == learner_id)
            )
        ).scalar() or 0

    print("\n  Flashcards Statistics")
    print(f"  {'Total cards:':<20} {sum(by_status.values())}")
    print(f"  {'New (unseen):':<20} {by_status.get('new', 0)}")
    print(f"  {'Learning:':<20} {by_status.get('learning', 0)}")
    print(f"  {'Review (21d+):':<20} {by_status.get('review', 0)}")
    print(f"  {'Total reviews:':<20} {reviews}")
    print()


def main() -> None:
    """Entry point for the Flashcards SRS CLI application."""
    parser = argparse.ArgumentParser(
        prog="flashcards",
        description="Flashcards spaced repetition",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # review
    review_parser = subparsers.add_parser("review", help="Start a review session")
    review_parser.add_argument(
        "--max-cards", type=int, default=0, help="Stop after this many cards (0 = whole queue)"
    )

    # add
    add_parser = subparsers.add_parser("add", help="Add a new card")
    add_parser.add_argument("front", help="Question side")
    add_parser.add_argument("back", help="Answer side")

    # due
    subparsers.add_parser("due", help="Show cards due for review")

    # limits
    subparsers.add_parser("limits", help="Show today's daily limit usage")

    # stats
    subparsers.add_parser("stats", help="Show your statistics")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "review": cmd_review,
        "add": cmd_add,
        "due": cmd_due,
        "limits": cmd_limits,
        "stats": cmd_stats,
    }

    asyncio.run(cmd_map[args.command](args))


if __name__ == "__main__":
    main()
