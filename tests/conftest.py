"""Pytest configuration for test isolation.

The SQL store shares one process-wide engine (``db.client``) and reads
``DATABASE_URL`` and the ``LEDGER_INGEST_*`` settings from the environment.
Each test starts with those cleared and the engine disposed so a test's
SQLite file never leaks into the next one.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from db.client import reset_engine

_ENV_VARS = (
    "DATABASE_URL",
    "LEDGER_INGEST_PALETTE",
    "LEDGER_INGEST_COLOR_SEED",
    "LEDGER_INGEST_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()
