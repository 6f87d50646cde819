"""
timesheet_config -- single public entrypoint for timesheet configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``timesheet_kernel``.  The kernel MUST
    NEVER import from ``timesheet_config``; ``bridges`` translate the
    loaded configuration into kernel inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Same YAML source always produces the same checksum.
    - ``DATABASE_URL`` from the environment overrides ``database.url``
      without changing the checksum.

Failure modes:
    - ``FileNotFoundError`` -- no configuration set with the given name.
    - ``ValueError`` -- a value fails validation.

Audit relevance:
    Every successful call emits a ``TIMESHEET_CONFIG_TRACE`` log entry
    with the set name, version, checksum and approval switches.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from timesheet_config.bridges import (
    build_approval_engine,
    build_engine_settings,
    init_database,
)
from timesheet_config.loader import load_yaml_file, parse_config
from timesheet_config.schema import (
    ApprovalSettings,
    DatabaseSettings,
    LoggingSettings,
    TimesheetConfig,
)

_logger = logging.getLogger("timesheet_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

DATABASE_URL_ENV = "DATABASE_URL"


def get_active_config(
    config_dir: Path | None = None,
    name: str = "default",
) -> TimesheetConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_dir: Override path to configuration sets directory.
            Defaults to timesheet_config/sets/.
        name: Configuration set name; ``<name>.yaml`` is loaded.

    Raises:
        FileNotFoundError: If the configuration set does not exist.
        ValueError: If a value fails validation.
    """
    sets_dir = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = sets_dir / f"{name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"No configuration set '{name}' in {sets_dir}")

    data = load_yaml_file(path)
    config = parse_config(data, name, env_url=os.environ.get(DATABASE_URL_ENV))

    _logger.info(
        "TIMESHEET_CONFIG_TRACE",
        extra={
            "trace_type": "TIMESHEET_CONFIG_TRACE",
            "config_set": config.name,
            "config_version": config.version,
            "checksum": config.checksum,
            "under_review_blocks_submission": config.approval.under_review_blocks_submission,
            "needs_revision_blocks_approval": config.approval.needs_revision_blocks_approval,
            "default_percentage": config.approval.default_percentage,
        },
    )
    return config


__all__ = [
    "ApprovalSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "TimesheetConfig",
    "build_approval_engine",
    "build_engine_settings",
    "get_active_config",
    "init_database",
]
