from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from study_companion.streak.status import (
    StreakState,
    StreakStatus,
    advance,
    classify,
    days_since,
)

TODAY = datetime(2024, 6, 10, 20, 0)


def test_classify_reference_cases():
    assert classify(TODAY, TODAY) is StreakStatus.ACTIVE
    assert classify(TODAY - timedelta(days=1), TODAY) is StreakStatus.NEARLY_EXPIRING
    assert classify(TODAY - timedelta(days=30), TODAY) is StreakStatus.EXPIRED
    assert classify(None, TODAY) is StreakStatus.EXPIRED


@pytest.mark.parametrize(
    "last,expected",
    [
        (datetime(2024, 6, 10, 0, 1), StreakStatus.ACTIVE),
        (datetime(2024, 6, 9, 23, 59), StreakStatus.NEARLY_EXPIRING),
        (datetime(2024, 6, 9, 0, 0), StreakStatus.NEARLY_EXPIRING),
        (datetime(2024, 6, 8, 23, 59), StreakStatus.EXPIRED),
        (datetime(2024, 6, 12, 9, 0), StreakStatus.ACTIVE),
    ],
)
def test_classify_uses_calendar_days(last, expected):
    assert classify(last, TODAY) is expected


def test_days_since_converts_to_now_timezone():
    plus_two = timezone(timedelta(hours=2))
    now = datetime(2024, 6, 10, 1, 0, tzinfo=plus_two)
    # 23:30 UTC on the 9th is 01:30 on the 10th at +02:00.
    last = datetime(2024, 6, 9, 23, 30, tzinfo=timezone.utc)

    assert days_since(now, last) == 0
    assert classify(last, now) is StreakStatus.ACTIVE


def test_advance_counts_consecutive_days():
    state = StreakState()

    state = advance(state, TODAY - timedelta(days=2))
    assert (state.current, state.longest) == (1, 1)
    state = advance(state, TODAY - timedelta(days=1))
    assert (state.current, state.longest) == (2, 2)
    state = advance(state, TODAY)
    state = advance(state, TODAY + timedelta(hours=1))
    assert (state.current, state.longest) == (3, 3)
    assert state.last_study_at == TODAY + timedelta(hours=1)


def test_advance_restarts_after_gap_but_keeps_longest():
    state = StreakState(last_study_at=TODAY - timedelta(days=5), current=4, longest=4)

    state = advance(state, TODAY)

    assert state.current == 1
    assert state.longest == 4


def test_effective_current_drops_to_zero_once_expired():
    state = StreakState(last_study_at=TODAY - timedelta(days=1), current=3, longest=3)

    assert state.effective_current(TODAY) == 3
    assert state.effective_current(TODAY + timedelta(days=1)) == 0


def test_state_round_trips_through_dict():
    state = StreakState(last_study_at=TODAY, current=2, longest=5)

    assert StreakState.from_dict(state.to_dict()) == state
    assert StreakState.from_dict({}) == StreakState()
