"""
tests/conftest.py — Shared Test Fixtures
=========================================

Provides a real SQLite-backed ledger plus the in-memory platform fakes
from :mod:`helpers`.
"""

from __future__ import annotations

import pytest
from sqlalchemy import Engine

from helpers import FakeCache, FakeNicknames
from nickswap.database.engine import create_db_engine, init_db
from nickswap.services.ledger import OverrideLedger


@pytest.fixture
def db_engine(tmp_path) -> Engine:
    """A file-backed SQLite engine with the ledger table created.

    File-backed so that ``run_db`` worker threads each get their own
    connection, as they would in production.
    """
    engine = create_db_engine(f"sqlite:///{tmp_path / 'names.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def ledger(db_engine) -> OverrideLedger:
    return OverrideLedger(db_engine)


@pytest.fixture
def cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def nicknames(ledger) -> FakeNicknames:
    return FakeNicknames(ledger)
