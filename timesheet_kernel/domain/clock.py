"""
Clock -- where the kernel gets "now" from.

Transition audit rows are stamped with ``clock.now()`` of the clock the
service was built with.  Nothing else in the kernel reads wall time, so a
``DeterministicClock`` makes audit timestamps reproducible in tests.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only class here that touches
    the outside world.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

AUDIT_EPOCH = datetime(2025, 1, 6, 9, 0, tzinfo=UTC)


def _require_aware(moment: datetime) -> datetime:
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise ValueError(f"Clock time must be timezone-aware, got {moment!r}")
    return moment


class Clock(ABC):
    """Source of timezone-aware timestamps."""

    @abstractmethod
    def now(self) -> datetime: ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Starts at ``AUDIT_EPOCH`` (Monday of the first week in the test
    catalog) unless given another aware datetime.
    """

    def __init__(self, start: datetime = AUDIT_EPOCH):
        self._current = _require_aware(start)

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = _require_aware(moment)

    def advance(self, seconds: float = 1, **delta: float) -> datetime:
        """Move forward by ``seconds`` plus any ``timedelta`` keywords; return the new time."""
        step = timedelta(seconds=seconds, **delta)
        if step < timedelta(0):
            raise ValueError("DeterministicClock cannot move backwards")
        self._current += step
        return self._current
