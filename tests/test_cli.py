"""Tests for CLI commands (non-interactive paths)."""

import argparse

import pytest
from conftest import make_card
from sqlalchemy.ext.asyncio import AsyncSession

from flashcards.__main__ import cmd_add, cmd_due, cmd_limits, ensure_db, ensure_learner


@pytest.mark.asyncio
async def test_ensure_db(db: AsyncSession) -> None:
    """Database tables can be created."""
    await ensure_db()


@pytest.mark.asyncio
async def test_ensure_learner(db: AsyncSession) -> None:
    """Default learner is created on first call."""
    await ensure_db()
    learner_id = await ensure_learner()
    assert learner_id >= 1

    # Second call returns same ID
    learner_id2 = await ensure_learner()
    assert learner_id2 == learner_id


@pytest.mark.asyncio
async def test_add_then_due(db: AsyncSession, capsys: pytest.CaptureFixture[str]) -> None:
    await cmd_add(argparse.Namespace(front="hola", back="hello"))
    await cmd_due(argparse.Namespace())

    out = capsys.readouterr().out
    assert "Added card" in out
    assert "hola  ->  hello" in out
    assert "0 cards due, 1 new cards available" in out


@pytest.mark.asyncio
async def test_limits(db: AsyncSession, capsys: pytest.CaptureFixture[str]) -> None:
    learner_id = await ensure_learner()
    await make_card(db, learner_id)
    await cmd_limits(argparse.Namespace())

    out = capsys.readouterr().out
    assert "0/25" in out
