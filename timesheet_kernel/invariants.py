"""
Kernel Invariants Contract.

These invariants are structural law for the timesheet kernel. They are
enforced by the approval engine, the ledger value objects, and database
constraints. No configuration switch may turn them off; configuration may
only choose between the documented variants (see
``EngineSettings.needs_revision_blocks_approval``).

This module exists solely to declare these invariants explicitly.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    CHRONOLOGICAL_SUBMISSION = "chronological_submission"
    """A user's weeks, from the first obligated week onward, are submitted
    in ascending period_from order. Enforced by ApprovalEngine (admin
    override excepted)."""

    COMPLETE_BEFORE_SUBMIT = "complete_before_submit"
    """A week is submitted only when logged hours equal the effective
    required hours. Enforced by ApprovalEngine (admin override excepted)."""

    ORDERED_APPROVAL = "ordered_approval"
    """A week is approved only when no earlier week in the user's window
    is under review. Enforced by ApprovalEngine for every actor."""

    FORWARD_PERCENTAGE_INHERITANCE = "forward_percentage_inheritance"
    """A week without an explicit percentage inherits the nearest earlier
    explicit value, else the default. Enforced by PercentageLedger."""

    SINGLE_STATUS_ROW = "single_status_row"
    """At most one status / percentage row per (user, week) and one hours
    row per (user, week, client, media type). Enforced by UNIQUE
    constraints and upsert semantics in SqlTimesheetStore."""

    NO_ZERO_HOUR_ROWS = "no_zero_hour_rows"
    """Hour entries of exactly zero are deleted, never stored. Enforced by
    SqlTimesheetStore.upsert_hours and a CHECK constraint."""

    ROLE_CHECK_NOT_OVERRIDABLE = "role_check_not_overridable"
    """Admin override bypasses completeness and ordering only, never the
    actor authorization check."""

    APPEND_ONLY_AUDIT = "append_only_audit"
    """Transition audit rows are never updated or deleted. Enforced by
    db.immutability.append_only on TransitionAuditModel."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# Enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "timesheet_config",
)

# The pure domain layer may not import these (no ORM, no I/O).
FORBIDDEN_DOMAIN_IMPORTS: tuple[str, ...] = (
    "sqlalchemy",
    "timesheet_kernel.db",
    "timesheet_kernel.models",
    "timesheet_kernel.services",
    "timesheet_kernel.selectors",
)
