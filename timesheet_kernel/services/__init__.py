"""Services for the timesheet kernel (write side)."""

from timesheet_kernel.services.directory_service import DirectoryService
from timesheet_kernel.services.snapshot_cache import SnapshotCache
from timesheet_kernel.services.timesheet_service import TimesheetService
from timesheet_kernel.services.timesheet_store import SqlTimesheetStore
from timesheet_kernel.services.week_service import (
    WeekCatalogService,
    suggest_required_hours,
)

__all__ = [
    "DirectoryService",
    "SnapshotCache",
    "SqlTimesheetStore",
    "TimesheetService",
    "WeekCatalogService",
    "suggest_required_hours",
]
