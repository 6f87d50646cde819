"""
Module: timesheet_kernel.selectors.base
Responsibility: Read-only query helpers shared by the selectors.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    the pure domain value objects.  MUST NOT import from services/.

Invariants enforced:
    - Selectors only read.  No add, delete, flush or commit on the session
      (checked by the architecture tests).
    - Results leave as frozen domain values via the models' ``to_dto()``.
"""

from abc import ABC
from collections.abc import Iterator
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from timesheet_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Read-only view over a caller-owned Session."""

    def __init__(self, session: Session):
        self.session = session

    def dtos(self, stmt: Select) -> list[Any]:
        """Run ``stmt`` and convert each row with ``to_dto()``."""
        return [row.to_dto() for row in self.session.scalars(stmt)]

    def rows_for_user(self, model: type[Base], user_id: UUID) -> Iterator[Any]:
        """All ledger rows of ``model`` belonging to ``user_id``."""
        return iter(self.session.scalars(select(model).where(model.user_id == user_id)))
