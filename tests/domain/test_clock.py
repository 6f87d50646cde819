"""Tests for the kernel clocks."""

from datetime import UTC, datetime, timedelta

import pytest

from timesheet_kernel.domain.clock import AUDIT_EPOCH, DeterministicClock, SystemClock


def test_system_clock_is_utc():
    assert SystemClock().now().tzinfo is UTC


def test_deterministic_clock_holds_still():
    clock = DeterministicClock()
    assert clock.now() == clock.now() == AUDIT_EPOCH


def test_advance():
    clock = DeterministicClock()
    assert clock.advance() == AUDIT_EPOCH + timedelta(seconds=1)
    assert clock.advance(0, days=7) == AUDIT_EPOCH + timedelta(days=7, seconds=1)


def test_advance_backwards_rejected():
    with pytest.raises(ValueError):
        DeterministicClock().advance(-5)


def test_naive_times_rejected():
    with pytest.raises(ValueError):
        DeterministicClock(datetime(2025, 1, 6, 9, 0))
    clock = DeterministicClock()
    with pytest.raises(ValueError):
        clock.set_time(datetime(2025, 2, 3))


def test_set_time():
    clock = DeterministicClock()
    moment = datetime(2025, 3, 3, 8, 30, tzinfo=UTC)
    clock.set_time(moment)
    assert clock.now() == moment
