"""
Module: timesheet_kernel.models.week_status
Responsibility: ORM persistence for the per (user, week) approval status.

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    SINGLE_STATUS_ROW -- UNIQUE(user_id, week_id); the store upserts.
    Status vocabulary limited by CHECK constraint.  A missing row means
    'unconfirmed'.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import TrackedBase, UUIDString


class WeekStatusModel(TrackedBase):
    """Current approval status of one user's week."""

    __tablename__ = "week_statuses"

    __table_args__ = (
        UniqueConstraint("user_id", "week_id", name="uq_week_statuses_user_week"),
        CheckConstraint(
            "status IN ('unconfirmed', 'under-review', 'accepted', 'needs-revision')",
            name="ck_week_statuses_valid_status",
        ),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    week_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("custom_weeks.id"), nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    def __repr__(self) -> str:
        return f"<WeekStatus user={self.user_id} week={self.week_id} {self.status}>"
