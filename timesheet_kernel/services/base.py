"""
BaseService -- shared plumbing for the timesheet services.

Responsibility:
    Holds the caller's Session and the two patterns every write path
    uses: SAVEPOINT scoping for a unit of ledger writes, and translation
    of SQLAlchemy failures into ``PersistenceError``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Services flush, they never commit or roll back the caller's
    transaction.  ``savepoint()`` only ever commits or rolls back the
    nested transaction it opened, so a failed transition leaves the
    outer transaction usable.
"""

from abc import ABC
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timesheet_kernel.db.base import Base
from timesheet_kernel.exceptions import PersistenceError
from timesheet_kernel.logging_config import get_logger

ModelType = TypeVar("ModelType", bound=Base)

logger = get_logger("services")


class BaseService(ABC, Generic[ModelType]):
    """Session holder for services whose main table is ``ModelType``."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def translate_errors(self, operation: str) -> Iterator[None]:
        """Re-raise any SQLAlchemyError as PersistenceError, logged at ERROR."""
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error(
                "persistence_failed",
                extra={"operation": operation},
                exc_info=True,
            )
            raise PersistenceError(operation, str(exc)) from exc

    @contextmanager
    def savepoint(self, label: str) -> Iterator[None]:
        """Run the block in a SAVEPOINT, released on success and rolled back on error."""
        nested = self.session.begin_nested()
        try:
            yield
            nested.commit()
        except Exception:
            nested.rollback()
            logger.warning("savepoint_rolled_back", extra={"savepoint": label})
            raise
