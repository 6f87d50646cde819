"""
Module: timesheet_kernel.db.base
Responsibility: Shared declarative base for the timesheet tables.

Architecture position: Kernel > DB.  Imported by every model module; imports
    nothing from models/, services/, selectors/ or domain/.

Conventions:
    - Every row is keyed by a uuid4 ``id`` stored as CHAR-like String(36), so
      the same schema runs on SQLite (tests) and PostgreSQL.
    - Hours and percentages are Numeric(10, 2); no float columns.
    - Primary and foreign keys get deterministic names from the metadata
      naming convention.  CHECK, UNIQUE and index names are spelled out on
      each model.
    - ``TrackedBase`` adds server-side created_at / updated_at.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import Date, DateTime, MetaData, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

NAMING_CONVENTION = {
    "pk": "pk_%(table_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
}


class UUIDString(TypeDecorator):
    """
    UUID column persisted as its 36-character text form.

    Bound values may be ``UUID`` instances or any string ``UUID()`` accepts;
    they are normalized to the canonical lowercase hyphenated form so that
    lookups by user, week, client or media type id compare equal regardless
    of how the caller spelled the id.  Loaded values come back as ``UUID``.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, PyUUID):
            value = PyUUID(str(value))
        return str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else PyUUID(value)


class Base(DeclarativeBase):
    """Root of all timesheet models; supplies the uuid4 ``id`` key."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(10, 2),
        datetime: DateTime(timezone=True),
        date: Date,
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds created_at (set once by the server) and updated_at (bumped on UPDATE)."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )
