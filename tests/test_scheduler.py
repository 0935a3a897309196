"""Tests for the scheduling engine: transitions, ease floor, status, preview."""

from datetime import date, timedelta

import pytest

from backend.srs.errors import InvalidCardState, InvalidRating
from backend.srs.scheduler import (
    CardState,
    CardStatus,
    Rating,
    Scheduler,
    SchedulerParams,
    format_interval,
    parse_rating,
)

D = date(2024, 3, 1)


def _state(interval: int = 6, ease: float = 2.5, status: CardStatus = CardStatus.LEARNING) -> CardState:
    return CardState(status=status, interval=interval, ease=ease, due_date=D)


class TestTransition:
    def setup_method(self) -> None:
        self.scheduler = Scheduler()

    def test_new_card_good(self) -> None:
        result = self.scheduler.transition(CardState.new(), Rating.GOOD, D)
        assert result.new_state.interval == 1
        assert result.new_state.status == CardStatus.LEARNING
        assert result.new_state.due_date == D + timedelta(days=1)
        assert result.new_state.ease == 2.5

    def test_new_card_hard_and_easy(self) -> None:
        hard = self.scheduler.transition(CardState.new(), Rating.HARD, D)
        easy = self.scheduler.transition(CardState.new(), Rating.EASY, D)
        assert hard.new_state.interval == 1
        assert hard.new_state.ease == pytest.approx(2.35)
        assert easy.new_state.interval == 4
        assert easy.new_state.ease == pytest.approx(2.65)
        assert easy.new_state.status == CardStatus.LEARNING

    def test_new_card_again_stays_at_zero(self) -> None:
        result = self.scheduler.transition(CardState.new(), Rating.AGAIN, D)
        assert result.new_state.interval == 0
        assert result.new_state.status == CardStatus.LEARNING
        assert result.new_state.due_date == D

    def test_good_multiplies_by_ease(self) -> None:
        result = self.scheduler.transition(_state(6, 2.5), Rating.GOOD, D)
        assert result.new_state.interval == 15
        assert result.new_state.due_date == D + timedelta(days=15)
        assert result.new_state.status == CardStatus.LEARNING
        assert result.new_state.ease == 2.5

    def test_easy_applies_bonus(self) -> None:
        result = self.scheduler.transition(_state(6, 2.5), Rating.EASY, D)
        assert result.new_state.interval == 20  # ceil(19.5)
        assert result.new_state.status == CardStatus.LEARNING
        assert result.new_state.ease == pytest.approx(2.65)

    def test_hard_grows_slowly(self) -> None:
        result = self.scheduler.transition(_state(10, 2.5), Rating.HARD, D)
        # 10 * 1.2 is 12.000000000000002 in floating point; must not become 13
        assert result.new_state.interval == 12
        assert result.new_state.ease == pytest.approx(2.35)

    def test_again_resets_mature_card(self) -> None:
        state = _state(25, 2.5, CardStatus.REVIEW)
        result = self.scheduler.transition(state, Rating.AGAIN, D)
        assert result.new_state.interval == 0
        assert result.new_state.ease == pytest.approx(2.3)
        assert result.new_state.status == CardStatus.LEARNING
        assert result.new_state.due_date == D

    def test_graduates_to_review_at_threshold(self) -> None:
        result = self.scheduler.transition(_state(9, 2.5), Rating.GOOD, D)
        assert result.new_state.interval == 23
        assert result.new_state.status == CardStatus.REVIEW

    def test_just_below_threshold_stays_learning(self) -> None:
        result = self.scheduler.transition(_state(8, 2.5), Rating.GOOD, D)
        assert result.new_state.interval == 20
        assert result.new_state.status == CardStatus.LEARNING

    def test_delta_records_before_and_after(self) -> None:
        result = self.scheduler.transition(_state(6, 2.5), Rating.HARD, D)
        delta = result.delta
        assert delta.rating == Rating.HARD
        assert (delta.old_interval, delta.new_interval) == (6, 8)
        assert delta.old_ease == 2.5
        assert delta.new_ease == pytest.approx(2.35)
        assert not delta.was_new

    # --- Invariants ---

    @pytest.mark.parametrize("rating", list(Rating))
    @pytest.mark.parametrize("ease", [1.3, 1.35, 1.45, 2.5, 3.1])
    def test_ease_never_below_floor(self, rating: Rating, ease: float) -> None:
        result = self.scheduler.transition(_state(7, ease), rating, D)
        assert result.new_state.ease >= 1.3
        assert result.new_state.interval >= 0

    def test_repeated_lapses_hold_at_floor(self) -> None:
        state = _state(30, 2.5, CardStatus.REVIEW)
        for _ in range(20):
            state = self.scheduler.transition(state, Rating.AGAIN, D).new_state
        assert state.ease == 1.3
        assert state.interval == 0

    @pytest.mark.parametrize("interval", [0, 1, 3, 6, 25, 100])
    def test_easy_never_shorter_than_good(self, interval: int) -> None:
        state = _state(interval, 2.5)
        good = self.scheduler.transition(state, Rating.GOOD, D)
        easy = self.scheduler.transition(state, Rating.EASY, D)
        assert easy.new_state.interval >= good.new_state.interval

    def test_same_inputs_same_outputs(self) -> None:
        state = _state(6, 2.5)
        first = self.scheduler.transition(state, Rating.GOOD, D)
        second = self.scheduler.transition(state, Rating.GOOD, D)
        assert first == second
        assert state == _state(6, 2.5)  # input untouched

    # --- Errors ---

    @pytest.mark.parametrize("bad", [0, 5, -1, 99, "3", 3.0, True, None])
    def test_invalid_rating_rejected(self, bad: object) -> None:
        with pytest.raises(InvalidRating):
            self.scheduler.transition(_state(), bad, D)

    def test_invalid_rating_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_rating(7)

    def test_plain_int_rating_accepted(self) -> None:
        assert parse_rating(4) is Rating.EASY
        result = self.scheduler.transition(_state(6, 2.5), 3, D)
        assert result.new_state.interval == 15

    def test_negative_interval_rejected(self) -> None:
        with pytest.raises(InvalidCardState):
            self.scheduler.transition(_state(-1, 2.5), Rating.GOOD, D)

    def test_ease_below_floor_rejected(self) -> None:
        with pytest.raises(InvalidCardState):
            self.scheduler.transition(_state(5, 1.1), Rating.GOOD, D)


class TestIntervalCap:
    def setup_method(self) -> None:
        self.scheduler = Scheduler()

    def test_repeated_easy_stops_at_cap(self) -> None:
        state = CardState.new()
        for _ in range(30):
            state = self.scheduler.transition(state, Rating.EASY, D).new_state
            assert state.interval <= 36500
        assert state.interval == 36500
        assert state.due_date == D + timedelta(days=36500)
        assert state.status == CardStatus.REVIEW

    @pytest.mark.parametrize("rating", [Rating.HARD, Rating.GOOD, Rating.EASY])
    def test_oversized_stored_interval_is_clamped(self, rating: Rating) -> None:
        result = self.scheduler.transition(_state(1_200_000, 2.5, CardStatus.REVIEW), rating, D)
        assert result.new_state.interval == 36500
        assert result.delta.old_interval == 1_200_000

    def test_again_still_resets_capped_card(self) -> None:
        result = self.scheduler.transition(_state(36500, 2.5, CardStatus.REVIEW), Rating.AGAIN, D)
        assert result.new_state.interval == 0

    def test_custom_cap(self) -> None:
        scheduler = Scheduler(SchedulerParams(max_interval=30))
        result = scheduler.transition(_state(20, 2.5), Rating.GOOD, D)
        assert result.new_state.interval == 30


class TestSchedulerParams:
    def test_custom_threshold(self) -> None:
        scheduler = Scheduler(SchedulerParams(graduation_interval=7))
        result = scheduler.transition(_state(3, 2.5), Rating.GOOD, D)
        assert result.new_state.interval == 8
        assert result.new_state.status == CardStatus.REVIEW

    def test_custom_penalties(self) -> None:
        scheduler = Scheduler(SchedulerParams(again_ease_penalty=0.5, ease_floor=1.5))
        result = scheduler.transition(_state(3, 1.8), Rating.AGAIN, D)
        assert result.new_state.ease == 1.5

    def test_from_settings_matches_defaults(self) -> None:
        from backend.config import Settings

        assert SchedulerParams.from_settings(Settings()) == SchedulerParams()


class TestPreview:
    def test_preview_new_card(self) -> None:
        previews = Scheduler().preview(CardState.new(), D)
        assert previews == {Rating.AGAIN: 0, Rating.HARD: 1, Rating.GOOD: 1, Rating.EASY: 4}

    def test_preview_seen_card(self) -> None:
        previews = Scheduler().preview(_state(6, 2.5), D)
        assert previews == {Rating.AGAIN: 0, Rating.HARD: 8, Rating.GOOD: 15, Rating.EASY: 20}


class TestFormatInterval:
    @pytest.mark.parametrize(
        ("days", "expected"),
        [(0, "now"), (1, "1d"), (13, "13d"), (14, "2w"), (30, "4w"), (90, "3mo"), (365, "1y"), (548, "1.5y")],
    )
    def test_format(self, days: int, expected: str) -> None:
        assert format_interval(days) == expected
