"""
Configuration Loader (``timesheet_config.loader``).

Responsibility
--------------
Reads a YAML configuration set and parses it into the frozen dataclasses
of ``timesheet_config.schema``.  Runtime callers use
``timesheet_config.get_active_config()`` instead of this module.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range or mistyped values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from timesheet_config.schema import (
    ApprovalSettings,
    DatabaseSettings,
    LoggingSettings,
    TimesheetConfig,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _parse_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"{key} must be true or false, got {value!r}")


def parse_approval(data: dict[str, Any]) -> ApprovalSettings:
    under_review_blocks = _parse_bool(
        data.get("under_review_blocks_submission", True),
        "approval.under_review_blocks_submission",
    )
    revision_blocks = _parse_bool(
        data.get("needs_revision_blocks_approval", False),
        "approval.needs_revision_blocks_approval",
    )
    raw = data.get("default_percentage", 100)
    try:
        percentage = Decimal(str(raw))
    except InvalidOperation:
        raise ValueError(f"approval.default_percentage is not a number: {raw!r}") from None
    if percentage < 0 or percentage > 100:
        raise ValueError(
            f"approval.default_percentage must be between 0 and 100, got {percentage}"
        )
    return ApprovalSettings(
        under_review_blocks_submission=under_review_blocks,
        needs_revision_blocks_approval=revision_blocks,
        default_percentage=percentage,
    )


def _parse_count(data: dict[str, Any], key: str, default: int, section: str) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{section}.{key} must be a non-negative integer, got {value!r}")
    return value


def parse_database(data: dict[str, Any], env_url: str | None = None) -> DatabaseSettings:
    return DatabaseSettings(
        url=env_url or data.get("url", "sqlite://"),
        echo=_parse_bool(data.get("echo", False), "database.echo"),
        pool_size=_parse_count(data, "pool_size", 10, "database"),
        max_overflow=_parse_count(data, "max_overflow", 5, "database"),
        pool_timeout=_parse_count(data, "pool_timeout", 30, "database"),
        pool_recycle=_parse_count(data, "pool_recycle", 1800, "database"),
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {_LOG_LEVELS}, got {level!r}")
    return LoggingSettings(level=level)


def parse_config(
    data: dict[str, Any],
    name: str,
    env_url: str | None = None,
) -> TimesheetConfig:
    """Build a ``TimesheetConfig`` from the parsed YAML mapping."""
    return TimesheetConfig(
        name=name,
        version=str(data.get("version", "1")),
        checksum=compute_checksum(data),
        approval=parse_approval(data.get("approval") or {}),
        database=parse_database(data.get("database") or {}, env_url),
        logging=parse_logging(data.get("logging") or {}),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
