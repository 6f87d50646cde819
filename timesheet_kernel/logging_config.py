"""
Structured JSON logging for the timesheet kernel.

Every record under the ``timesheet_kernel`` namespace is written as one
JSON object per line.  Request-scoped fields (who acts, on whose week,
which transition) travel in ``LogContext`` and are merged into every
record emitted while they are bound, so services only pass the event
payload in ``extra``::

    logger = get_logger("services.timesheet")
    with LogContext.bind(user_id=str(user_id), week_id=str(week_id)):
        logger.info("transition_applied", extra={"to_status": "accepted"})
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "new_correlation_id",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

_LOGGER_PREFIX = "timesheet_kernel"

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"timesheet_log_{name}", default=None)
    for name in ("correlation_id", "actor_id", "user_id", "week_id", "transition")
}


def new_correlation_id() -> str:
    return uuid4().hex


class LogContext:
    """Context-local log fields, safe across threads and asyncio tasks."""

    FIELDS: tuple[str, ...] = tuple(_CONTEXT_FIELDS)

    @staticmethod
    def _var(name: str) -> ContextVar[str | None]:
        try:
            return _CONTEXT_FIELDS[name]
        except KeyError:
            raise TypeError(f"Unknown log context field: {name!r}") from None

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set context fields.  ``None`` values leave the field untouched."""
        for name, value in fields.items():
            var = cls._var(name)
            if value is not None:
                var.set(value)

    @classmethod
    def get(cls, name: str) -> str | None:
        return cls._var(name).get()

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Bound fields only, in declaration order."""
        return {
            name: value
            for name, var in _CONTEXT_FIELDS.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_FIELDS.values():
            var.set(None)

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[type["LogContext"]]:
        """Bind fields for the duration of the block, then restore them."""
        tokens = [
            (cls._var(name), cls._var(name).set(value))
            for name, value in fields.items()
            if value is not None
        ]
        try:
            yield cls
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (UUID, Decimal)):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, bound context, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))

        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
            "traceback": self.formatException(record.exc_info),
        }
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        # Kernel errors keep their structured attributes (week_id, status, ...)
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        return fields


# ---------------------------------------------------------------------------
# Logger factory and initialization
# ---------------------------------------------------------------------------

_HANDLER_MARKER = "_timesheet_structured"
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the timesheet_kernel namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Install the structured handler on the kernel root logger.

    Idempotent: once a structured handler is installed, later calls do
    nothing until ``reset_logging()``.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        if any(getattr(h, _HANDLER_MARKER, False) for h in root.handlers):
            return

        h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        h.setFormatter(StructuredFormatter())
        setattr(h, _HANDLER_MARKER, True)

        root.setLevel(level.upper() if isinstance(level, str) else level)
        root.propagate = False
        root.addHandler(h)


def reset_logging() -> None:
    """Remove the structured handler and restore defaults.  For tests."""
    root = logging.getLogger(_LOGGER_PREFIX)
    with _lock:
        for h in list(root.handlers):
            if getattr(h, _HANDLER_MARKER, False):
                root.removeHandler(h)
        root.setLevel(logging.WARNING)
        root.propagate = True
