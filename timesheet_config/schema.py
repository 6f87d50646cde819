"""
Timesheet configuration schema.

Frozen dataclasses parsed from a YAML configuration set by the loader.
The kernel never sees these types; ``timesheet_config.bridges`` turns
them into kernel inputs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class ApprovalSettings:
    """Rules of the approval state machine that are configurable."""

    under_review_blocks_submission: bool = True
    needs_revision_blocks_approval: bool = False
    default_percentage: Decimal = Decimal("100")


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite://"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5
    pool_timeout: int = 30
    pool_recycle: int = 1800


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"


@dataclass(frozen=True)
class TimesheetConfig:
    """A loaded configuration set.

    ``checksum`` is the SHA-256 of the canonical JSON of the source YAML
    (before environment overrides), identifying the configuration version.
    """

    name: str
    version: str
    checksum: str
    approval: ApprovalSettings = field(default_factory=ApprovalSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
