"""
Module: timesheet_kernel.models.week_hours
Responsibility: ORM persistence for hour entries per
    (user, week, client, media type).

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    SINGLE_STATUS_ROW -- UNIQUE(user_id, week_id, client_id, media_type_id).
    NO_ZERO_HOUR_ROWS -- hours > 0 (CHECK constraint); zero is a delete.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import TrackedBase, UUIDString


class WeekHoursModel(TrackedBase):
    """Logged hours for one client / media-type cell of a user's week."""

    __tablename__ = "week_hours"

    __table_args__ = (
        UniqueConstraint(
            "user_id", "week_id", "client_id", "media_type_id",
            name="uq_week_hours_cell",
        ),
        CheckConstraint("hours > 0", name="ck_week_hours_positive"),
        Index("ix_week_hours_user_week", "user_id", "week_id"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    week_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("custom_weeks.id"), nullable=False,
    )
    client_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    media_type_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    hours: Mapped[Decimal] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<WeekHours user={self.user_id} week={self.week_id} "
            f"client={self.client_id} media={self.media_type_id} {self.hours}h>"
        )
