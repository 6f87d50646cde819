"""
Module: timesheet_kernel.models.user
Responsibility: ORM persistence for timesheet users and their approval
    relations (manager, user head) and obligation start (first week).

Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - role limited to admin / user / manager (CHECK constraint).
    - manager_id and user_head_id are independent self-references.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from timesheet_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from timesheet_kernel.domain.values import User


class UserModel(TrackedBase):
    """
    Directory entry for a timesheet user.

    Guarantees:
        - name is unique.
        - hidden users stay in the directory but drop out of team views.
    """

    __tablename__ = "users"

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'user', 'manager')",
            name="ck_users_valid_role",
        ),
        Index("ix_users_manager_id", "manager_id"),
        Index("ix_users_user_head_id", "user_head_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    manager_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=True,
    )
    user_head_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("users.id"), nullable=True,
    )
    first_week_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("custom_weeks.id"), nullable=True,
    )
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<User {self.name} role={self.role}>"

    def to_dto(self) -> User:
        """Convert ORM model to frozen domain DTO."""
        from timesheet_kernel.domain.values import Role, User as UserDTO

        return UserDTO(
            id=self.id,
            name=self.name,
            role=Role(self.role),
            manager_id=self.manager_id,
            user_head_id=self.user_head_id,
            first_week_id=self.first_week_id,
            hidden=self.hidden,
        )
