"""
Module: timesheet_kernel.db.immutability
Responsibility: ORM-level write protection for append-only tables.

``append_only(Model, "EntityName")`` attaches before_update and
before_delete mapper listeners that log the attempt and raise
``ImmutabilityViolationError``.  The flush is aborted, so the enclosing
savepoint or transaction rolls back with nothing written.
"""

from sqlalchemy import event

from timesheet_kernel.exceptions import ImmutabilityViolationError
from timesheet_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_protected: set[type] = set()


def _blocked(entity_type: str, operation: str):
    def listener(mapper, connection, target):
        entity_id = str(getattr(target, "id", None))
        logger.error(
            "immutability_violation_blocked",
            extra={
                "entity_type": entity_type,
                "entity_id": entity_id,
                "operation": operation,
            },
        )
        raise ImmutabilityViolationError(entity_type, entity_id, operation)

    return listener


def append_only(model_cls: type, entity_type: str) -> type:
    """Reject every UPDATE and DELETE of ``model_cls`` rows.  Idempotent."""
    if model_cls in _protected:
        return model_cls
    event.listen(model_cls, "before_update", _blocked(entity_type, "update"))
    event.listen(model_cls, "before_delete", _blocked(entity_type, "delete"))
    _protected.add(model_cls)
    return model_cls


def is_append_only(model_cls: type) -> bool:
    return model_cls in _protected
