"""
Module: timesheet_kernel.models.custom_week
Responsibility: ORM persistence for admin-defined custom weeks.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - period_from <= period_to and required_hours > 0 (CHECK constraints).
    - period_from is unique.
    - Non-overlap and same-month rules are checked by WeekCatalogService
      at creation time; this model does not enforce them.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from timesheet_kernel.domain.values import Week


class CustomWeekModel(TrackedBase):
    """A calendar period with its own required-hours baseline."""

    __tablename__ = "custom_weeks"

    __table_args__ = (
        CheckConstraint("period_from <= period_to", name="ck_custom_weeks_period_order"),
        CheckConstraint("required_hours > 0", name="ck_custom_weeks_positive_hours"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    period_from: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    period_to: Mapped[date] = mapped_column(Date, nullable=False)
    required_hours: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<CustomWeek {self.name} {self.period_from}..{self.period_to}>"

    def to_dto(self) -> Week:
        from timesheet_kernel.domain.values import Week as WeekDTO

        return WeekDTO(
            id=self.id,
            name=self.name,
            period_from=self.period_from,
            period_to=self.period_to,
            required_hours=self.required_hours,
        )
