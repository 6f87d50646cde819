"""
Module: timesheet_kernel.models.week_percentage
Responsibility: ORM persistence for sparse per (user, week) work percentages.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    SINGLE_STATUS_ROW -- UNIQUE(user_id, week_id).
    0 <= percentage <= 100 (CHECK constraint).
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import TrackedBase, UUIDString


class WeekPercentageModel(TrackedBase):
    """Explicit percentage for one user's week; later weeks inherit it."""

    __tablename__ = "week_percentages"

    __table_args__ = (
        UniqueConstraint("user_id", "week_id", name="uq_week_percentages_user_week"),
        CheckConstraint(
            "percentage >= 0 AND percentage <= 100",
            name="ck_week_percentages_range",
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    week_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("custom_weeks.id"), nullable=False,
    )
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    def __repr__(self) -> str:
        return f"<WeekPercentage user={self.user_id} week={self.week_id} {self.percentage}%>"
