"""
DirectoryService -- user directory administration.

Responsibility:
    Creates users and maintains the relations the approval engine reads:
    manager, user head, first week (start of the obligation window) and
    the hidden flag used by team views.

Architecture position:
    Kernel > Services -- imperative shell.

Failure modes:
    - UserNotFoundError for an unknown user, manager or head id.
    - WeekNotFoundError for an unknown first week.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from timesheet_kernel.domain.values import Role, User
from timesheet_kernel.exceptions import UserNotFoundError, WeekNotFoundError
from timesheet_kernel.logging_config import get_logger
from timesheet_kernel.models.custom_week import CustomWeekModel
from timesheet_kernel.models.user import UserModel
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.directory")


class DirectoryService(BaseService[UserModel]):
    """Maintains directory entries; every method returns the updated User DTO."""

    def __init__(self, session: Session):
        super().__init__(session)

    def _get(self, user_id: UUID) -> UserModel:
        row = self.session.get(UserModel, user_id)
        if row is None:
            raise UserNotFoundError(str(user_id))
        return row

    def get_user(self, user_id: UUID) -> User:
        return self._get(user_id).to_dto()

    def create_user(
        self,
        name: str,
        role: Role = Role.USER,
        manager_id: UUID | None = None,
        user_head_id: UUID | None = None,
        first_week_id: UUID | None = None,
    ) -> User:
        if manager_id is not None:
            self._get(manager_id)
        if user_head_id is not None:
            self._get(user_head_id)
        if first_week_id is not None:
            self._require_week(first_week_id)

        row = UserModel(
            name=name,
            role=Role(role).value,
            manager_id=manager_id,
            user_head_id=user_head_id,
            first_week_id=first_week_id,
            hidden=False,
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "user_created",
            extra={"user_id": str(row.id), "role": row.role},
        )
        return row.to_dto()

    def assign_manager(self, user_id: UUID, manager_id: UUID | None) -> User:
        row = self._get(user_id)
        if manager_id is not None:
            self._get(manager_id)
        row.manager_id = manager_id
        self.session.flush()
        logger.info(
            "manager_assigned",
            extra={"user_id": str(user_id), "manager_id": str(manager_id) if manager_id else None},
        )
        return row.to_dto()

    def assign_user_head(self, user_id: UUID, head_id: UUID | None) -> User:
        """Set or clear (``head_id=None``) the user's head."""
        row = self._get(user_id)
        if head_id is not None:
            self._get(head_id)
        row.user_head_id = head_id
        self.session.flush()
        logger.info(
            "user_head_assigned",
            extra={"user_id": str(user_id), "head_id": str(head_id) if head_id else None},
        )
        return row.to_dto()

    def set_first_week(self, user_id: UUID, week_id: UUID | None) -> User:
        row = self._get(user_id)
        if week_id is not None:
            self._require_week(week_id)
        row.first_week_id = week_id
        self.session.flush()
        logger.info(
            "first_week_set",
            extra={"user_id": str(user_id), "first_week_id": str(week_id) if week_id else None},
        )
        return row.to_dto()

    def set_hidden(self, user_id: UUID, hidden: bool) -> User:
        row = self._get(user_id)
        row.hidden = hidden
        self.session.flush()
        logger.info("user_visibility_changed", extra={"user_id": str(user_id), "hidden": hidden})
        return row.to_dto()

    def _require_week(self, week_id: UUID) -> None:
        if self.session.get(CustomWeekModel, week_id) is None:
            raise WeekNotFoundError(str(week_id))
