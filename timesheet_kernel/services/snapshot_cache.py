"""
SnapshotCache -- read-side cache for ledger snapshots.

Responsibility:
    Holds the week catalog and each user's status and percentage rows
    between calls, so repeated evaluations do not re-query them.  Hour
    entries are never cached; they are loaded per target week.

Architecture position:
    Kernel > Services -- in-process cache shared by the services of one
    caller.  Not thread-safe; one cache per request/worker.

Invariants enforced:
    - A user's entries are dropped after every applied transition or
      ledger write for that user (``invalidate``).
    - Creating a week drops the cached catalog (``invalidate_weeks``).
    - Staleness between refreshes is tolerated; the engine re-derives
      blocking state on every call.
"""

from collections.abc import Callable, Mapping
from decimal import Decimal
from types import MappingProxyType
from uuid import UUID

from timesheet_kernel.domain.values import Week, WeekStatus
from timesheet_kernel.logging_config import get_logger

logger = get_logger("services.snapshot_cache")


class SnapshotCache:
    """Memoizes catalog, statuses and percentages keyed by user."""

    def __init__(self) -> None:
        self._weeks: tuple[Week, ...] | None = None
        self._statuses: dict[UUID, Mapping[UUID, WeekStatus]] = {}
        self._percentages: dict[UUID, Mapping[UUID, Decimal]] = {}

    def weeks(self, loader: Callable[[], list[Week]]) -> tuple[Week, ...]:
        if self._weeks is None:
            self._weeks = tuple(loader())
        return self._weeks

    def statuses(
        self,
        user_id: UUID,
        loader: Callable[[UUID], Mapping[UUID, WeekStatus]],
    ) -> Mapping[UUID, WeekStatus]:
        if user_id not in self._statuses:
            self._statuses[user_id] = MappingProxyType(dict(loader(user_id)))
        return self._statuses[user_id]

    def percentages(
        self,
        user_id: UUID,
        loader: Callable[[UUID], Mapping[UUID, Decimal]],
    ) -> Mapping[UUID, Decimal]:
        if user_id not in self._percentages:
            self._percentages[user_id] = MappingProxyType(dict(loader(user_id)))
        return self._percentages[user_id]

    def invalidate(self, user_id: UUID) -> None:
        """Drop everything cached for ``user_id``."""
        self._statuses.pop(user_id, None)
        self._percentages.pop(user_id, None)
        logger.debug("snapshot_cache_invalidated", extra={"user_id": str(user_id)})

    def invalidate_weeks(self) -> None:
        self._weeks = None

    def invalidate_all(self) -> None:
        self._weeks = None
        self._statuses.clear()
        self._percentages.clear()
