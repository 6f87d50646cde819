"""
Typed Exception Hierarchy for the Timesheet Kernel.

===============================================================================
EXCEPTIONS VS. REJECTIONS
===============================================================================

The kernel distinguishes two kinds of "no":

  1. Expected, user-facing refusals of a status transition (hours missing,
     an earlier week still open, wrong approver).  These are NOT exceptions.
     The approval engine returns a ``TransitionRejected`` value carrying a
     ``RejectionReason`` (see ``timesheet_kernel.domain.approval``).

  2. Everything else -- data-integrity problems, invalid administrative
     input, persistence failures.  These are typed exceptions defined here.

Every exception carries a CODE class attribute (machine-readable) and
stores its context as attributes, never only inside the message string:

    try:
        service.set_percentage(admin, user_id, week_id, Decimal("140"))
    except InvalidPercentageError as e:
        api_response(code=e.code, percentage=str(e.percentage))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TimesheetKernelError (base)
    |
    +-- NotFoundError
    |   +-- WeekNotFoundError
    |   +-- UserNotFoundError
    |
    +-- PersistenceError
    |   +-- ImmutabilityViolationError
    |
    +-- WeekCatalogError
    |   +-- InvalidWeekPeriodError
    |   +-- WeekOverlapError
    |
    +-- LedgerError
        +-- InvalidPercentageError
        +-- InvalidHoursError
        +-- HoursLockedError
        +-- UnauthorizedActorError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                 | When Raised
------------|----------------------|---------------------------------------------
NotFound    | WEEK_NOT_FOUND       | Week id absent from the catalog snapshot
            | USER_NOT_FOUND       | User id absent from the directory
------------|----------------------|---------------------------------------------
Persistence | PERSISTENCE_ERROR    | Backend store failed; transition not applied
            | IMMUTABILITY_VIOLATION | Update or delete of an append-only row
------------|----------------------|---------------------------------------------
Catalog     | INVALID_WEEK_PERIOD  | Bad name/dates/hours on week creation
            | WEEK_OVERLAP         | New week overlaps an existing week
------------|----------------------|---------------------------------------------
Ledger      | INVALID_PERCENTAGE   | Percentage outside [0, 100]
            | INVALID_HOURS        | Negative hour value
            | HOURS_LOCKED         | Editing hours of a submitted/accepted week
            | UNAUTHORIZED_ACTOR   | Actor may not edit this user's ledgers
===============================================================================
"""


class TimesheetKernelError(Exception):
    """
    Base exception for all timesheet kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TIMESHEET_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(TimesheetKernelError):
    """Referenced entity is absent from the snapshot. Fatal to the operation."""

    code: str = "NOT_FOUND"


class WeekNotFoundError(NotFoundError):
    """Week id does not exist in the catalog."""

    code: str = "WEEK_NOT_FOUND"

    def __init__(self, week_id: str):
        self.week_id = week_id
        super().__init__(f"Week not found: {week_id}")


class UserNotFoundError(NotFoundError):
    """User id does not exist in the directory."""

    code: str = "USER_NOT_FOUND"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


# Persistence exceptions


class PersistenceError(TimesheetKernelError):
    """
    The backend store failed while committing or loading ledger rows.

    Raised with the original driver/ORM exception chained as ``__cause__``.
    No retry is attempted by the kernel; ledger state is left as it was
    before the failed call.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Persistence failure during {operation}: {detail}")


class ImmutabilityViolationError(PersistenceError):
    """An append-only row (transition audit) was updated or deleted."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, operation: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(operation, f"{entity_type} {entity_id} is append-only")


# Week catalog exceptions


class WeekCatalogError(TimesheetKernelError):
    """Base exception for week catalog administration errors."""

    code: str = "WEEK_CATALOG_ERROR"


class InvalidWeekPeriodError(WeekCatalogError):
    """Week definition is malformed (name, dates, or required hours)."""

    code: str = "INVALID_WEEK_PERIOD"

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid week '{name}': {reason}")


class WeekOverlapError(WeekCatalogError):
    """New week date range overlaps an existing week."""

    code: str = "WEEK_OVERLAP"

    def __init__(
        self,
        new_week_name: str,
        existing_week_name: str,
        overlap_start: str,
        overlap_end: str,
    ):
        self.new_week_name = new_week_name
        self.existing_week_name = existing_week_name
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        super().__init__(
            f"Week {new_week_name} overlaps with {existing_week_name} "
            f"({overlap_start} to {overlap_end})"
        )


# Ledger exceptions


class LedgerError(TimesheetKernelError):
    """Base exception for hours/percentage ledger writes."""

    code: str = "LEDGER_ERROR"


class InvalidPercentageError(LedgerError):
    """Percentage is outside the closed range [0, 100]."""

    code: str = "INVALID_PERCENTAGE"

    def __init__(self, percentage: str):
        self.percentage = percentage
        super().__init__(f"Percentage must be between 0 and 100, got {percentage}")


class InvalidHoursError(LedgerError):
    """Hour value is negative."""

    code: str = "INVALID_HOURS"

    def __init__(self, hours: str):
        self.hours = hours
        super().__init__(f"Hours must be zero or positive, got {hours}")


class HoursLockedError(LedgerError):
    """Hours of a week that is under review or accepted cannot be edited."""

    code: str = "HOURS_LOCKED"

    def __init__(self, user_id: str, week_id: str, status: str):
        self.user_id = user_id
        self.week_id = week_id
        self.status = status
        super().__init__(
            f"Hours for user {user_id} in week {week_id} are locked "
            f"(status: {status})"
        )


class UnauthorizedActorError(LedgerError):
    """Actor may not modify the target user's ledgers."""

    code: str = "UNAUTHORIZED_ACTOR"

    def __init__(self, actor: str, user_id: str, action: str):
        self.actor = actor
        self.user_id = user_id
        self.action = action
        super().__init__(f"{actor} is not allowed to {action} for user {user_id}")
