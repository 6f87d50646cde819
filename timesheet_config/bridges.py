"""
Config -> Kernel Bridges.

Functions that convert a ``TimesheetConfig`` into kernel inputs.  They
live here because the kernel must never import ``timesheet_config``.

Usage:
    config = get_active_config()
    init_database(config)
    service = TimesheetService(
        session,
        engine=build_approval_engine(config),
        default_percentage=config.approval.default_percentage,
    )
"""

from __future__ import annotations

from sqlalchemy.engine import Engine

from timesheet_config.schema import TimesheetConfig
from timesheet_kernel.db.engine import PoolSettings, init_engine_from_url
from timesheet_kernel.domain.approval_engine import ApprovalEngine, EngineSettings
from timesheet_kernel.logging_config import configure_logging


def build_engine_settings(config: TimesheetConfig) -> EngineSettings:
    return EngineSettings(
        under_review_blocks_submission=config.approval.under_review_blocks_submission,
        needs_revision_blocks_approval=config.approval.needs_revision_blocks_approval,
    )


def build_approval_engine(config: TimesheetConfig) -> ApprovalEngine:
    return ApprovalEngine(build_engine_settings(config))


def init_database(config: TimesheetConfig) -> Engine:
    """Configure logging at the configured level and initialize the engine."""
    configure_logging(level=config.logging.level)
    db = config.database
    pool = PoolSettings(
        size=db.pool_size,
        max_overflow=db.max_overflow,
        timeout=db.pool_timeout,
        recycle=db.pool_recycle,
    )
    return init_engine_from_url(db.url, echo=db.echo, pool=pool)
