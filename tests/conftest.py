"""
Pytest fixtures for the cash kernel test suite.

Provides:
- Structured logging for the whole session, with per-test log capture
- A deterministic clock
- An in-memory record store, and a SQLite-backed one for store tests
- Service instances wired to the store and clock

No database server is needed: SQLAlchemy tests run on in-memory SQLite.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from cash_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from cash_kernel.domain.clock import DeterministicClock
from cash_kernel.domain.settings import KernelSettings
from cash_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from cash_kernel.services import (
    MonthArchiveService,
    ReconciliationService,
)
from cash_kernel.store import InMemoryLedgerStore, SqlAlchemyLedgerStore


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture cash_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, recon):
            recon.create_withdrawal("10", "float")
            logs = captured_logs()
            assert any(r["message"] == "withdrawal_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("cash_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and store
# =============================================================================


@pytest.fixture
def clock():
    """Clock fixed at 2024-03-15 09:00 UTC."""
    return DeterministicClock(datetime(2024, 3, 15, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def sqlite_session():
    """Session on a fresh in-memory SQLite database, rolled back after the test."""
    init_engine_from_url("sqlite://")
    create_tables()
    session = get_session()
    yield session
    session.rollback()
    session.close()
    drop_tables()
    reset_engine()


@pytest.fixture
def sqlite_store(sqlite_session):
    return SqlAlchemyLedgerStore(sqlite_session)


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def settings():
    return KernelSettings()


@pytest.fixture
def recon(store, clock, settings):
    return ReconciliationService(store, clock, settings)


@pytest.fixture
def archive(store, clock, settings):
    return MonthArchiveService(store, clock, settings)


@pytest.fixture
def make_entry(recon, clock):
    """
    Record a daily entry, advancing the clock one second first so entries
    created in sequence have distinct created_at values.
    """

    def _make(
        date,
        cash_in="0",
        deposited="0",
        to_back_safe="0",
        left_in_front="0",
        **extra,
    ):
        clock.tick()
        return recon.create_or_update_entry(
            {
                "date": date,
                "cash_in": cash_in,
                "deposited": deposited,
                "to_back_safe": to_back_safe,
                "left_in_front": left_in_front,
                **extra,
            }
        )

    return _make
