"""
Ledger value objects (``timesheet_kernel.domain.ledgers``).

Responsibility
--------------
Read-only views over one user's percentage, hours, and status rows, and
the ``LedgerSnapshot`` that bundles them with the week catalog.  The
approval engine makes every decision from a snapshot and nothing else.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Percentage inheritance: a week without an explicit row takes the
  nearest earlier explicit value, else the default (100).
* Zero-hour entries are logically absent: they never contribute to
  totals and are dropped from ``entries_for()``.
* A missing status row reads as ``UNCONFIRMED``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from uuid import UUID

from timesheet_kernel.domain.values import (
    HUNDRED,
    ZERO,
    HourKey,
    User,
    Week,
    WeekStatus,
)
from timesheet_kernel.domain.week_catalog import WeekCatalog


class PercentageLedger:
    """Sparse per-week percentages for one user with forward inheritance."""

    def __init__(
        self,
        catalog: WeekCatalog,
        explicit: Mapping[UUID, Decimal],
        default: Decimal = HUNDRED,
    ):
        self._catalog = catalog
        self._explicit = MappingProxyType(
            {k: Decimal(v) for k, v in explicit.items()}
        )
        self._default = Decimal(default)

    @property
    def explicit(self) -> Mapping[UUID, Decimal]:
        return self._explicit

    def resolve(self, week_id: UUID) -> Decimal:
        """Effective percentage for ``week_id``.

        Explicit row first, then the nearest earlier explicit row, then
        the default.  Later weeks never influence the result.
        """
        if week_id in self._explicit:
            self._catalog.get(week_id)
            return self._explicit[week_id]
        for week in reversed(self._catalog.weeks_before(week_id)):
            if week.id in self._explicit:
                return self._explicit[week.id]
        return self._default


class HoursLedger:
    """Hour entries for one user, keyed by week then (client, media type)."""

    def __init__(self, entries: Mapping[UUID, Mapping[HourKey, Decimal]]):
        self._entries: dict[UUID, dict[HourKey, Decimal]] = {
            week_id: {
                key: Decimal(hours)
                for key, hours in cells.items()
                if Decimal(hours) != ZERO
            }
            for week_id, cells in entries.items()
        }

    def entries_for(self, week_id: UUID) -> Mapping[HourKey, Decimal]:
        return MappingProxyType(self._entries.get(week_id, {}))

    def total(self, week_id: UUID) -> Decimal:
        return sum(self._entries.get(week_id, {}).values(), ZERO)

    def with_entries(
        self,
        week_id: UUID,
        draft: Mapping[HourKey, Decimal],
    ) -> HoursLedger:
        """New ledger with ``draft`` cells laid over ``week_id``.

        A draft value of zero removes the cell.
        """
        merged = {wid: dict(cells) for wid, cells in self._entries.items()}
        cells = merged.setdefault(week_id, {})
        for key, hours in draft.items():
            if Decimal(hours) == ZERO:
                cells.pop(key, None)
            else:
                cells[key] = Decimal(hours)
        return HoursLedger(merged)


class StatusLedger:
    """Approval statuses for one user.  Absence means UNCONFIRMED."""

    def __init__(self, statuses: Mapping[UUID, WeekStatus]):
        self._statuses = MappingProxyType(
            {k: WeekStatus(v) for k, v in statuses.items()}
        )

    def status_of(self, week_id: UUID) -> WeekStatus:
        return self._statuses.get(week_id, WeekStatus.UNCONFIRMED)

    def submitted_weeks(self, catalog: WeekCatalog) -> tuple[Week, ...]:
        """Weeks under review or accepted, in catalog order."""
        return tuple(
            w for w in catalog if self.status_of(w.id).is_submitted
        )


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything the approval engine may look at for one user."""

    user: User
    catalog: WeekCatalog
    statuses: StatusLedger
    percentages: PercentageLedger
    hours: HoursLedger

    def window(self) -> tuple[Week, ...]:
        """The user's obligation window (first week onward)."""
        return self.catalog.weeks_from(self.user.first_week_id)

    def required_hours(self, week_id: UUID) -> int:
        week = self.catalog.get(week_id)
        return week.effective_required_hours(self.percentages.resolve(week_id))

    def total_hours(self, week_id: UUID) -> Decimal:
        return self.hours.total(week_id)

    def remaining_hours(self, week_id: UUID) -> Decimal:
        """Required minus logged.  Negative when over-logged."""
        return Decimal(self.required_hours(week_id)) - self.total_hours(week_id)

    def is_complete(self, week_id: UUID) -> bool:
        return self.remaining_hours(week_id) == ZERO

    def with_draft_hours(
        self,
        week_id: UUID,
        draft: Mapping[HourKey, Decimal],
    ) -> LedgerSnapshot:
        return LedgerSnapshot(
            user=self.user,
            catalog=self.catalog,
            statuses=self.statuses,
            percentages=self.percentages,
            hours=self.hours.with_entries(week_id, draft),
        )
