"""Selectors for the timesheet kernel (read side)."""

from timesheet_kernel.selectors.timesheet_selector import TimesheetSelector, WeekProgress

__all__ = [
    "TimesheetSelector",
    "WeekProgress",
]
