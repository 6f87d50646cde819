"""
Pure domain layer.

Value objects, the week catalog, the ledger views, and the approval
engine.  NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock)
- I/O

All domain objects are immutable and deterministic.
"""

from timesheet_kernel.domain.actors import Actor, Admin, Manager, Owner, UserHead
from timesheet_kernel.domain.approval import (
    WEEK_TRANSITIONS,
    HoursIntent,
    LedgerIntent,
    PercentageIntent,
    RejectionReason,
    StatusIntent,
    TransitionAccepted,
    TransitionKind,
    TransitionOutcome,
    TransitionRejected,
    TransitionRequest,
)
from timesheet_kernel.domain.approval_engine import ApprovalEngine, EngineSettings
from timesheet_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from timesheet_kernel.domain.ledgers import (
    HoursLedger,
    LedgerSnapshot,
    PercentageLedger,
    StatusLedger,
)
from timesheet_kernel.domain.store import TimesheetStore
from timesheet_kernel.domain.values import HourKey, Role, User, Week, WeekStatus
from timesheet_kernel.domain.week_catalog import WeekCatalog

__all__ = [
    "Actor",
    "Admin",
    "ApprovalEngine",
    "Clock",
    "DeterministicClock",
    "EngineSettings",
    "HourKey",
    "HoursIntent",
    "HoursLedger",
    "LedgerIntent",
    "LedgerSnapshot",
    "Manager",
    "Owner",
    "PercentageIntent",
    "PercentageLedger",
    "RejectionReason",
    "Role",
    "StatusIntent",
    "StatusLedger",
    "SystemClock",
    "TimesheetStore",
    "TransitionAccepted",
    "TransitionKind",
    "TransitionOutcome",
    "TransitionRejected",
    "TransitionRequest",
    "User",
    "UserHead",
    "WEEK_TRANSITIONS",
    "Week",
    "WeekCatalog",
    "WeekStatus",
]
