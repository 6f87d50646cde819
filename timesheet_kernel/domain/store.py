"""
TimesheetStore -- the persistence collaborator's contract.

Responsibility:
    Declares the request/response interface through which snapshots are
    loaded and accepted intents are committed.  The approval engine never
    calls a store; services do.

Architecture position:
    Kernel > Domain -- interface only.  The SQLAlchemy implementation is
    ``timesheet_kernel.services.timesheet_store.SqlTimesheetStore``.

Contract:
    - Upserts are idempotent on their unique keys.
    - ``upsert_hours`` with ``hours == 0`` deletes the row.
    - ``apply`` commits all intents of one transition or none of them;
      failures surface as ``PersistenceError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from timesheet_kernel.domain.approval import LedgerIntent
from timesheet_kernel.domain.values import HourKey, User, Week, WeekStatus


class TimesheetStore(Protocol):
    """Pluggable persistence boundary for the timesheet ledgers."""

    def load_weeks(self) -> list[Week]:
        """All weeks ordered by period_from."""
        ...

    def load_user(self, user_id: UUID) -> User:
        """Directory entry; raises UserNotFoundError when absent."""
        ...

    def load_statuses(self, user_id: UUID) -> Mapping[UUID, WeekStatus]:
        ...

    def load_percentages(self, user_id: UUID) -> Mapping[UUID, Decimal]:
        ...

    def load_hours(self, user_id: UUID, week_id: UUID) -> Mapping[HourKey, Decimal]:
        ...

    def upsert_status(self, user_id: UUID, week_id: UUID, status: WeekStatus) -> None:
        ...

    def upsert_percentage(self, user_id: UUID, week_id: UUID, percentage: Decimal) -> None:
        ...

    def upsert_hours(
        self,
        user_id: UUID,
        week_id: UUID,
        client_id: UUID,
        media_type_id: UUID,
        hours: Decimal,
    ) -> None:
        ...

    def apply(self, intents: Iterable[LedgerIntent]) -> None:
        """Commit ``intents`` atomically."""
        ...
