"""
SqlTimesheetStore -- SQLAlchemy implementation of ``TimesheetStore``.

Responsibility:
    Loads the week catalog, directory entries and ledger rows as domain
    values, and writes ledger rows as idempotent upserts keyed on their
    UNIQUE constraints.

Architecture position:
    Kernel > Services -- imperative shell.  Called by TimesheetService;
    never by the approval engine.

Invariants enforced:
    SINGLE_STATUS_ROW -- every write is "update if the key exists, else
        insert"; repeated writes never create a second row.
    NO_ZERO_HOUR_ROWS -- ``upsert_hours`` with 0 deletes the row.
    ``apply()`` runs all intents of one transition in a SAVEPOINT; on
    failure the SAVEPOINT is rolled back and nothing of the transition
    remains in the session.

Failure modes:
    - UserNotFoundError from ``load_user``.
    - InvalidHoursError for negative hours.
    - PersistenceError wrapping any ``SQLAlchemyError`` (cause chained).
"""

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from timesheet_kernel.domain.approval import (
    HoursIntent,
    LedgerIntent,
    PercentageIntent,
    StatusIntent,
)
from timesheet_kernel.domain.values import ZERO, HourKey, User, Week, WeekStatus
from timesheet_kernel.exceptions import (
    InvalidHoursError,
    UserNotFoundError,
)
from timesheet_kernel.logging_config import get_logger
from timesheet_kernel.models.custom_week import CustomWeekModel
from timesheet_kernel.models.user import UserModel
from timesheet_kernel.models.week_hours import WeekHoursModel
from timesheet_kernel.models.week_percentage import WeekPercentageModel
from timesheet_kernel.models.week_status import WeekStatusModel
from timesheet_kernel.services.base import BaseService

logger = get_logger("services.timesheet_store")


class SqlTimesheetStore(BaseService[WeekStatusModel]):
    """
    Persistence collaborator over a caller-owned Session.

    Guarantees:
        - Flush-only; the caller commits.
        - Loads return domain values, never ORM instances.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # -----------------------------------------------------------------
    # Loads
    # -----------------------------------------------------------------

    def load_weeks(self) -> list[Week]:
        with self.translate_errors("load_weeks"):
            rows = self.session.scalars(
                select(CustomWeekModel).order_by(CustomWeekModel.period_from)
            ).all()
        return [row.to_dto() for row in rows]

    def load_user(self, user_id: UUID) -> User:
        with self.translate_errors("load_user"):
            row = self.session.get(UserModel, user_id)
        if row is None:
            raise UserNotFoundError(str(user_id))
        return row.to_dto()

    def load_statuses(self, user_id: UUID) -> dict[UUID, WeekStatus]:
        with self.translate_errors("load_statuses"):
            rows = self.session.scalars(
                select(WeekStatusModel).where(WeekStatusModel.user_id == user_id)
            ).all()
        return {row.week_id: WeekStatus(row.status) for row in rows}

    def load_percentages(self, user_id: UUID) -> dict[UUID, Decimal]:
        with self.translate_errors("load_percentages"):
            rows = self.session.scalars(
                select(WeekPercentageModel).where(WeekPercentageModel.user_id == user_id)
            ).all()
        return {row.week_id: Decimal(row.percentage) for row in rows}

    def load_hours(self, user_id: UUID, week_id: UUID) -> dict[HourKey, Decimal]:
        with self.translate_errors("load_hours"):
            rows = self.session.scalars(
                select(WeekHoursModel)
                .where(WeekHoursModel.user_id == user_id)
                .where(WeekHoursModel.week_id == week_id)
            ).all()
        return {
            HourKey(row.client_id, row.media_type_id): Decimal(row.hours)
            for row in rows
        }

    # -----------------------------------------------------------------
    # Upserts
    # -----------------------------------------------------------------

    def upsert_status(self, user_id: UUID, week_id: UUID, status: WeekStatus) -> None:
        with self.translate_errors("upsert_status"):
            row = self.session.scalars(
                select(WeekStatusModel)
                .where(WeekStatusModel.user_id == user_id)
                .where(WeekStatusModel.week_id == week_id)
            ).one_or_none()
            if row is None:
                self.session.add(
                    WeekStatusModel(user_id=user_id, week_id=week_id, status=status.value)
                )
            else:
                row.status = status.value
            self.session.flush()

    def upsert_percentage(self, user_id: UUID, week_id: UUID, percentage: Decimal) -> None:
        with self.translate_errors("upsert_percentage"):
            row = self.session.scalars(
                select(WeekPercentageModel)
                .where(WeekPercentageModel.user_id == user_id)
                .where(WeekPercentageModel.week_id == week_id)
            ).one_or_none()
            if row is None:
                self.session.add(
                    WeekPercentageModel(
                        user_id=user_id, week_id=week_id, percentage=Decimal(percentage),
                    )
                )
            else:
                row.percentage = Decimal(percentage)
            self.session.flush()

    def upsert_hours(
        self,
        user_id: UUID,
        week_id: UUID,
        client_id: UUID,
        media_type_id: UUID,
        hours: Decimal,
    ) -> None:
        """Write one hour cell.  Zero deletes the row."""
        hours = Decimal(hours)
        if hours < ZERO:
            raise InvalidHoursError(str(hours))

        with self.translate_errors("upsert_hours"):
            row = self.session.scalars(
                select(WeekHoursModel)
                .where(WeekHoursModel.user_id == user_id)
                .where(WeekHoursModel.week_id == week_id)
                .where(WeekHoursModel.client_id == client_id)
                .where(WeekHoursModel.media_type_id == media_type_id)
            ).one_or_none()
            if hours == ZERO:
                if row is not None:
                    self.session.delete(row)
            elif row is None:
                self.session.add(
                    WeekHoursModel(
                        user_id=user_id,
                        week_id=week_id,
                        client_id=client_id,
                        media_type_id=media_type_id,
                        hours=hours,
                    )
                )
            else:
                row.hours = hours
            self.session.flush()

    # -----------------------------------------------------------------
    # Atomic application
    # -----------------------------------------------------------------

    def apply(self, intents: Iterable[LedgerIntent]) -> None:
        """Write ``intents`` in order inside one SAVEPOINT."""
        intents = tuple(intents)
        with self.savepoint("apply_intents"):
            for intent in intents:
                match intent:
                    case StatusIntent():
                        self.upsert_status(intent.user_id, intent.week_id, intent.status)
                    case PercentageIntent():
                        self.upsert_percentage(
                            intent.user_id, intent.week_id, intent.percentage,
                        )
                    case HoursIntent():
                        self.upsert_hours(
                            intent.user_id,
                            intent.week_id,
                            intent.client_id,
                            intent.media_type_id,
                            intent.hours,
                        )
                    case _:
                        raise TypeError(f"Unknown ledger intent: {intent!r}")
        logger.debug("intents_applied", extra={"intent_count": len(intents)})
