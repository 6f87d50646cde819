"""
Approval domain types (``timesheet_kernel.domain.approval``).

Responsibility
--------------
Pure value objects for the week approval state machine: the transition
table, the enumerated rejection reasons, the ledger-mutation intents the
engine emits, and the accepted/rejected result records.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``WEEK_TRANSITIONS`` defines the only legal status changes; each
  transition kind has exactly one target status.
* Guard failures are values (``TransitionRejected``), never exceptions
  and never silent no-ops.
* A repeated transition whose target already holds is accepted with
  ``changed=False`` and no intents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from uuid import UUID

from timesheet_kernel.domain.actors import Actor
from timesheet_kernel.domain.values import HourKey, WeekStatus


class TransitionKind(str, Enum):
    """The four actions that move a week between statuses."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    ADMIN_REVERT = "admin_revert"


@dataclass(frozen=True)
class TransitionRule:
    """Legal source statuses and the target status of one transition kind."""

    sources: frozenset[WeekStatus]
    target: WeekStatus


WEEK_TRANSITIONS: dict[TransitionKind, TransitionRule] = {
    TransitionKind.SUBMIT: TransitionRule(
        sources=frozenset({WeekStatus.UNCONFIRMED, WeekStatus.NEEDS_REVISION}),
        target=WeekStatus.UNDER_REVIEW,
    ),
    TransitionKind.APPROVE: TransitionRule(
        sources=frozenset({WeekStatus.UNDER_REVIEW}),
        target=WeekStatus.ACCEPTED,
    ),
    TransitionKind.REJECT: TransitionRule(
        sources=frozenset({WeekStatus.UNDER_REVIEW}),
        target=WeekStatus.NEEDS_REVISION,
    ),
    TransitionKind.ADMIN_REVERT: TransitionRule(
        sources=frozenset({WeekStatus.ACCEPTED}),
        target=WeekStatus.UNCONFIRMED,
    ),
}

# Kinds for which "target already holds" is an accepted no-op.  Reverting
# lands on the default status, so a no-op there would be indistinguishable
# from a week that was never submitted.
IDEMPOTENT_KINDS: frozenset[TransitionKind] = frozenset({
    TransitionKind.SUBMIT,
    TransitionKind.APPROVE,
    TransitionKind.REJECT,
})


class RejectionReason(str, Enum):
    """Enumerated guard failures."""

    INCOMPLETE_HOURS = "IncompleteHours"
    EARLIER_WEEK_BLOCKING = "EarlierWeekBlocking"
    NOT_AUTHORIZED = "NotAuthorized"
    UNKNOWN_WEEK = "UnknownWeek"
    INVALID_STATE = "InvalidState"


# =========================================================================
# Ledger-mutation intents
# =========================================================================


@dataclass(frozen=True)
class StatusIntent:
    """Upsert the status row of (user, week)."""

    user_id: UUID
    week_id: UUID
    status: WeekStatus


@dataclass(frozen=True)
class PercentageIntent:
    """Upsert the percentage row of (user, week)."""

    user_id: UUID
    week_id: UUID
    percentage: Decimal


@dataclass(frozen=True)
class HoursIntent:
    """Upsert one hour cell; ``hours == 0`` deletes the row."""

    user_id: UUID
    week_id: UUID
    client_id: UUID
    media_type_id: UUID
    hours: Decimal


LedgerIntent = StatusIntent | PercentageIntent | HoursIntent


# =========================================================================
# Request and results
# =========================================================================


@dataclass(frozen=True)
class TransitionRequest:
    """A proposed transition for one explicit week.

    ``draft_hours`` carries unsaved hour cells that a submit persists
    together with the status change; they count toward completeness.
    """

    kind: TransitionKind
    week_id: UUID
    actor: Actor
    draft_hours: dict[HourKey, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionAccepted:
    """The transition is legal.  ``intents`` must be committed atomically."""

    kind: TransitionKind
    user_id: UUID
    week_id: UUID
    from_status: WeekStatus
    to_status: WeekStatus
    override: bool = False
    changed: bool = True
    intents: tuple[LedgerIntent, ...] = ()

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class TransitionRejected:
    """The transition is not legal.  Nothing may be written.

    ``reason`` is the first failed guard in evaluation order; ``reasons``
    lists every guard that failed.
    """

    kind: TransitionKind
    user_id: UUID
    week_id: UUID
    reason: RejectionReason
    reasons: tuple[RejectionReason, ...] = ()
    detail: str = ""
    current_status: WeekStatus | None = None
    blocking_week_id: UUID | None = None
    remaining_hours: Decimal | None = None

    @property
    def accepted(self) -> bool:
        return False


TransitionOutcome = TransitionAccepted | TransitionRejected
