"""
Pytest fixtures for the timesheet kernel test suite.

Provides:
- A fresh in-memory SQLite database and session per test
- Structured-log capture
- A deterministic clock
- A standard catalog (W1..W4) and directory (admin, manager, head, employee)
- ``build_snapshot`` for database-free engine tests
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from timesheet_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from timesheet_kernel.domain.clock import DeterministicClock
from timesheet_kernel.domain.ledgers import (
    HoursLedger,
    LedgerSnapshot,
    PercentageLedger,
    StatusLedger,
)
from timesheet_kernel.domain.values import HourKey, Role, User, Week, WeekStatus
from timesheet_kernel.domain.week_catalog import WeekCatalog
from timesheet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from timesheet_kernel.services.directory_service import DirectoryService
from timesheet_kernel.services.snapshot_cache import SnapshotCache
from timesheet_kernel.services.timesheet_service import TimesheetService
from timesheet_kernel.services.week_service import WeekCatalogService

CLIENT_A = UUID("00000000-0000-0000-0000-0000000000a1")
CLIENT_B = UUID("00000000-0000-0000-0000-0000000000b2")
MEDIA_TV = UUID("00000000-0000-0000-0000-00000000c0c0")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """JSON logging at DEBUG for the whole run."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Start every test with no bound log fields."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture timesheet_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, timesheet_service):
            timesheet_service.submit(...)
            logs = captured_logs()
            assert any(r["message"] == "transition_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("timesheet_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _records() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield _records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with all tables, one per test."""
    eng = init_engine_from_url("sqlite://", echo=False)
    create_tables()
    yield eng
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def client_a() -> UUID:
    return CLIENT_A


@pytest.fixture
def client_b() -> UUID:
    return CLIENT_B


@pytest.fixture
def media_tv() -> UUID:
    return MEDIA_TV


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def snapshot_cache() -> SnapshotCache:
    return SnapshotCache()


@pytest.fixture
def week_service(session, snapshot_cache) -> WeekCatalogService:
    return WeekCatalogService(session, cache=snapshot_cache)


@pytest.fixture
def directory_service(session) -> DirectoryService:
    return DirectoryService(session)


@pytest.fixture
def timesheet_service(session, deterministic_clock, snapshot_cache) -> TimesheetService:
    return TimesheetService(
        session, clock=deterministic_clock, cache=snapshot_cache,
    )


# =============================================================================
# Standard catalog and directory
# =============================================================================


@dataclass(frozen=True)
class StandardWeeks:
    w1: Week
    w2: Week
    w3: Week
    w4: Week


@dataclass(frozen=True)
class StandardUsers:
    admin: User
    manager: User
    head: User
    employee: User


@pytest.fixture
def weeks(week_service) -> StandardWeeks:
    """Four consecutive 40-hour weeks in January 2025."""
    return StandardWeeks(
        w1=week_service.create_week("W1", date(2025, 1, 6), date(2025, 1, 12), 40),
        w2=week_service.create_week("W2", date(2025, 1, 13), date(2025, 1, 19), 40),
        w3=week_service.create_week("W3", date(2025, 1, 20), date(2025, 1, 26), 40),
        w4=week_service.create_week("W4", date(2025, 1, 27), date(2025, 1, 31), 40),
    )


@pytest.fixture
def users(directory_service, weeks) -> StandardUsers:
    """Employee reporting to ``manager`` with ``head`` as user head, starting W1."""
    admin = directory_service.create_user("Ada Admin", role=Role.ADMIN)
    manager = directory_service.create_user("Max Manager", role=Role.MANAGER)
    head = directory_service.create_user("Hana Head", role=Role.USER)
    employee = directory_service.create_user(
        "Emil Employee",
        manager_id=manager.id,
        user_head_id=head.id,
        first_week_id=weeks.w1.id,
    )
    return StandardUsers(admin=admin, manager=manager, head=head, employee=employee)


# =============================================================================
# Pure snapshot builder
# =============================================================================


def make_week(name: str, period_from: date, period_to: date, required_hours: int = 40) -> Week:
    return Week(
        id=uuid4(),
        name=name,
        period_from=period_from,
        period_to=period_to,
        required_hours=required_hours,
    )


@pytest.fixture
def domain_weeks() -> list[Week]:
    """Four consecutive 40-hour weeks, no database."""
    return [
        make_week("W1", date(2025, 1, 6), date(2025, 1, 12)),
        make_week("W2", date(2025, 1, 13), date(2025, 1, 19)),
        make_week("W3", date(2025, 1, 20), date(2025, 1, 26)),
        make_week("W4", date(2025, 1, 27), date(2025, 1, 31)),
    ]


@pytest.fixture
def domain_user(domain_weeks) -> User:
    return User(
        id=uuid4(),
        name="employee",
        manager_id=uuid4(),
        user_head_id=uuid4(),
        first_week_id=domain_weeks[0].id,
    )


@pytest.fixture
def build_snapshot(domain_weeks, domain_user):
    """
    Build a ``LedgerSnapshot`` from plain dicts.

    Usage::

        snap = build_snapshot(
            statuses={w1.id: WeekStatus.UNDER_REVIEW},
            hours={w2.id: Decimal("40")},
        )

    ``hours`` maps week id to a single total booked on CLIENT_A/MEDIA_TV.
    """

    def _build(
        statuses: dict[UUID, WeekStatus] | None = None,
        percentages: dict[UUID, Decimal] | None = None,
        hours: dict[UUID, Decimal] | None = None,
        user: User | None = None,
        weeks: list[Week] | None = None,
    ) -> LedgerSnapshot:
        catalog = WeekCatalog(weeks if weeks is not None else domain_weeks)
        entries = {
            week_id: {HourKey(CLIENT_A, MEDIA_TV): Decimal(total)}
            for week_id, total in (hours or {}).items()
        }
        return LedgerSnapshot(
            user=user or domain_user,
            catalog=catalog,
            statuses=StatusLedger(statuses or {}),
            percentages=PercentageLedger(catalog, percentages or {}),
            hours=HoursLedger(entries),
        )

    return _build
