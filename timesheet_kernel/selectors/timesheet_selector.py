"""
Module: timesheet_kernel.selectors.timesheet_selector
Responsibility: Read-side views over the directory and the ledgers: team
    listings for managers and user heads, and the per-week progress
    timeline of one user.
Architecture position: Kernel > Selectors.  May import from models/,
    selectors/base.py and domain value objects.

Invariants enforced:
    - Hidden users never appear in team listings.
    - Progress rows use the same percentage inheritance and zero-hour rule
      as the approval engine (they are computed from a LedgerSnapshot).

Failure modes:
    - UserNotFoundError if the user id is absent.
    - WeekNotFoundError if the user's first week is absent from the catalog.
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from timesheet_kernel.domain.ledgers import (
    HoursLedger,
    LedgerSnapshot,
    PercentageLedger,
    StatusLedger,
)
from timesheet_kernel.domain.values import HUNDRED, HourKey, User, Week, WeekStatus
from timesheet_kernel.domain.week_catalog import WeekCatalog
from timesheet_kernel.exceptions import UserNotFoundError
from timesheet_kernel.models.custom_week import CustomWeekModel
from timesheet_kernel.models.user import UserModel
from timesheet_kernel.models.week_hours import WeekHoursModel
from timesheet_kernel.models.week_percentage import WeekPercentageModel
from timesheet_kernel.models.week_status import WeekStatusModel
from timesheet_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class WeekProgress:
    """One row of a user's progress timeline."""

    week: Week
    status: WeekStatus
    required_hours: int
    logged_hours: Decimal

    @property
    def remaining_hours(self) -> Decimal:
        return Decimal(self.required_hours) - self.logged_hours

    @property
    def is_complete(self) -> bool:
        return self.remaining_hours == 0


class TimesheetSelector(BaseSelector[UserModel]):
    """
    Selector for team and progress views.

    Contract:
        All methods are read-only and return frozen DTOs ordered
        deterministically (users by name, weeks by period_from).
    """

    def __init__(self, session, default_percentage: Decimal = HUNDRED):
        super().__init__(session)
        self._default_percentage = Decimal(default_percentage)

    # -----------------------------------------------------------------
    # Team views
    # -----------------------------------------------------------------

    def team_for_manager(self, manager_id: UUID) -> list[User]:
        """Visible users whose manager is ``manager_id``."""
        stmt = (
            select(UserModel)
            .where(UserModel.manager_id == manager_id)
            .where(UserModel.hidden.is_(False))
            .order_by(UserModel.name)
        )
        return self.dtos(stmt)

    def team_for_user_head(self, head_id: UUID) -> list[User]:
        """Visible users who have ``head_id`` as their user head."""
        stmt = (
            select(UserModel)
            .where(UserModel.user_head_id == head_id)
            .where(UserModel.hidden.is_(False))
            .order_by(UserModel.name)
        )
        return self.dtos(stmt)

    # -----------------------------------------------------------------
    # Progress timeline
    # -----------------------------------------------------------------

    def week_progress(
        self,
        user_id: UUID,
        year: int | None = None,
        include_all: bool = False,
    ) -> list[WeekProgress]:
        """
        Status, required and logged hours for each week of ``user_id``.

        Args:
            user_id: Whose timeline to build.
            year: Only weeks whose period_from falls in this year.
            include_all: Show every catalog week instead of the user's
                window (admin view).
        """
        user_row = self.session.get(UserModel, user_id)
        if user_row is None:
            raise UserNotFoundError(str(user_id))

        snapshot = self._snapshot(user_row.to_dto())
        weeks = snapshot.catalog.weeks if include_all else snapshot.window()
        if year is not None:
            weeks = tuple(w for w in weeks if w.period_from.year == year)

        return [
            WeekProgress(
                week=week,
                status=snapshot.statuses.status_of(week.id),
                required_hours=snapshot.required_hours(week.id),
                logged_hours=snapshot.total_hours(week.id),
            )
            for week in weeks
        ]

    def _snapshot(self, user: User) -> LedgerSnapshot:
        catalog = WeekCatalog(
            self.dtos(select(CustomWeekModel).order_by(CustomWeekModel.period_from))
        )

        statuses = {
            row.week_id: WeekStatus(row.status)
            for row in self.rows_for_user(WeekStatusModel, user.id)
        }
        percentages = {
            row.week_id: row.percentage
            for row in self.rows_for_user(WeekPercentageModel, user.id)
        }
        hours: dict[UUID, dict[HourKey, Decimal]] = {}
        for row in self.rows_for_user(WeekHoursModel, user.id):
            hours.setdefault(row.week_id, {})[
                HourKey(row.client_id, row.media_type_id)
            ] = row.hours

        return LedgerSnapshot(
            user=user,
            catalog=catalog,
            statuses=StatusLedger(statuses),
            percentages=PercentageLedger(catalog, percentages, self._default_percentage),
            hours=HoursLedger(hours),
        )
