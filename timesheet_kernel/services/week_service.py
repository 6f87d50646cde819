"""
WeekCatalogService -- administration of custom weeks.

Responsibility:
    Creates custom weeks after validating their definition against the
    existing catalog, and answers catalog lookups for callers that do not
    need a full snapshot.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - A week has a non-blank name, period_from <= period_to, both dates
      in the same calendar month, and required_hours > 0.
    - Weeks never overlap (inclusive date ranges).

Failure modes:
    - InvalidWeekPeriodError for a malformed definition.
    - WeekOverlapError naming the first overlapping existing week.
"""

from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from timesheet_kernel.domain.values import Week
from timesheet_kernel.domain.week_catalog import WeekCatalog
from timesheet_kernel.exceptions import InvalidWeekPeriodError, WeekOverlapError
from timesheet_kernel.logging_config import get_logger
from timesheet_kernel.models.custom_week import CustomWeekModel
from timesheet_kernel.services.base import BaseService
from timesheet_kernel.services.snapshot_cache import SnapshotCache

logger = get_logger("services.week_catalog")

HOURS_PER_DAY = 8


def suggest_required_hours(period_from: date, period_to: date) -> int:
    """Default baseline for a new week: 8 hours for every calendar day."""
    days = (period_to - period_from).days + 1
    return max(days, 0) * HOURS_PER_DAY


class WeekCatalogService(BaseService[CustomWeekModel]):
    """Create and look up custom weeks."""

    def __init__(self, session: Session, cache: SnapshotCache | None = None):
        super().__init__(session)
        self._cache = cache

    def list_weeks(self) -> tuple[Week, ...]:
        rows = self.session.scalars(
            select(CustomWeekModel).order_by(CustomWeekModel.period_from)
        )
        return WeekCatalog(row.to_dto() for row in rows).weeks

    def week_starting(self, day: date) -> Week | None:
        """The week whose period_from is exactly ``day``."""
        return WeekCatalog(self.list_weeks()).week_starting(day)

    def create_week(
        self,
        name: str,
        period_from: date,
        period_to: date,
        required_hours: int | None = None,
    ) -> Week:
        """
        Create a custom week.

        Args:
            name: Display name; surrounding whitespace is stripped.
            period_from: First day (inclusive).
            period_to: Last day (inclusive), same month as period_from.
            required_hours: Baseline hours; defaults to
                ``suggest_required_hours(period_from, period_to)``.
        """
        name = (name or "").strip()
        if not name:
            raise InvalidWeekPeriodError(name, "name is required")
        if period_from is None or period_to is None:
            raise InvalidWeekPeriodError(name, "both dates are required")
        if period_from > period_to:
            raise InvalidWeekPeriodError(name, "period_from is after period_to")
        if (period_from.year, period_from.month) != (period_to.year, period_to.month):
            raise InvalidWeekPeriodError(name, "week must lie within one calendar month")

        if required_hours is None:
            required_hours = suggest_required_hours(period_from, period_to)
        if required_hours <= 0:
            raise InvalidWeekPeriodError(name, "required hours must be positive")

        for existing in self.list_weeks():
            if existing.overlaps(period_from, period_to):
                raise WeekOverlapError(
                    new_week_name=name,
                    existing_week_name=existing.name,
                    overlap_start=str(max(period_from, existing.period_from)),
                    overlap_end=str(min(period_to, existing.period_to)),
                )

        row = CustomWeekModel(
            name=name,
            period_from=period_from,
            period_to=period_to,
            required_hours=required_hours,
        )
        self.session.add(row)
        self.session.flush()

        if self._cache is not None:
            self._cache.invalidate_weeks()

        logger.info(
            "week_created",
            extra={
                "week_id": str(row.id),
                "week_name": name,
                "period_from": period_from,
                "period_to": period_to,
                "required_hours": required_hours,
            },
        )
        return row.to_dto()
