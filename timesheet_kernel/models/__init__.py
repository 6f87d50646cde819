"""ORM models.  Importing this package registers every table on Base.metadata."""

from timesheet_kernel.models.custom_week import CustomWeekModel
from timesheet_kernel.models.transition_audit import TransitionAuditModel
from timesheet_kernel.models.user import UserModel
from timesheet_kernel.models.week_hours import WeekHoursModel
from timesheet_kernel.models.week_percentage import WeekPercentageModel
from timesheet_kernel.models.week_status import WeekStatusModel

__all__ = [
    "CustomWeekModel",
    "TransitionAuditModel",
    "UserModel",
    "WeekHoursModel",
    "WeekPercentageModel",
    "WeekStatusModel",
]
