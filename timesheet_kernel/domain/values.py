"""
Core value objects (``timesheet_kernel.domain.values``).

Responsibility
--------------
Frozen DTOs shared by every layer: roles, the week status vocabulary,
catalog weeks, directory users, and hour-entry keys.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

HUNDRED = Decimal("100")
ZERO = Decimal("0")


class Role(str, Enum):
    """Directory role of a user."""

    ADMIN = "admin"
    USER = "user"
    MANAGER = "manager"


class WeekStatus(str, Enum):
    """Approval status of one (user, week).

    A missing status row means UNCONFIRMED.
    """

    UNCONFIRMED = "unconfirmed"
    UNDER_REVIEW = "under-review"
    ACCEPTED = "accepted"
    NEEDS_REVISION = "needs-revision"

    @property
    def is_submitted(self) -> bool:
        """True for statuses that count as submitted (under review or accepted)."""
        return self in SUBMITTED_STATUSES


SUBMITTED_STATUSES: frozenset[WeekStatus] = frozenset({
    WeekStatus.UNDER_REVIEW,
    WeekStatus.ACCEPTED,
})

# Statuses in which the owner may still edit hours.
EDITABLE_STATUSES: frozenset[WeekStatus] = frozenset({
    WeekStatus.UNCONFIRMED,
    WeekStatus.NEEDS_REVISION,
})


@dataclass(frozen=True)
class Week:
    """An admin-defined custom week."""

    id: UUID
    name: str
    period_from: date
    period_to: date
    required_hours: int

    def effective_required_hours(self, percentage: Decimal) -> int:
        """Required hours scaled by ``percentage`` (0-100), rounded half-up."""
        scaled = Decimal(self.required_hours) * Decimal(percentage) / HUNDRED
        return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def overlaps(self, period_from: date, period_to: date) -> bool:
        return self.period_from <= period_to and period_from <= self.period_to


@dataclass(frozen=True)
class User:
    """Directory entry for a timesheet user."""

    id: UUID
    name: str
    role: Role = Role.USER
    manager_id: UUID | None = None
    user_head_id: UUID | None = None
    first_week_id: UUID | None = None
    hidden: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class HourKey:
    """Cell address of an hour entry inside one (user, week)."""

    client_id: UUID
    media_type_id: UUID
