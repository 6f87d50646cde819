"""
Module: timesheet_kernel.models.transition_audit
Responsibility: Append-only log of applied week status transitions.

Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Rows are immutable once written (registered with
      ``append_only``; UPDATE or DELETE raises ImmutabilityViolationError).
    - ``override`` records whether an admin override drove the change, so
      correction transitions stay distinguishable from regular ones.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import Base, UUIDString
from timesheet_kernel.db.immutability import append_only


class TransitionAuditModel(Base):
    """One applied status change."""

    __tablename__ = "week_transition_audit"

    __table_args__ = (
        Index("ix_week_transition_audit_user_week", "user_id", "week_id"),
    )

    user_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=False,
    )
    week_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("custom_weeks.id"), nullable=False,
    )
    transition: Mapped[str] = mapped_column(String(20), nullable=False)
    from_status: Mapped[str] = mapped_column(String(20), nullable=False)
    to_status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_kind: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<TransitionAudit {self.transition} {self.from_status}->{self.to_status} "
            f"override={self.override}>"
        )


append_only(TransitionAuditModel, "TransitionAudit")
