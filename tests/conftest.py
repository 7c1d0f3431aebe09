"""Pytest configuration for test isolation.

Makes the workspace packages importable without an install (``packages/`` and
``libs/ledger_db/src``) and keeps storage hermetic: ``DATABASE_URL`` is cleared
for every test and cached engines are disposed afterwards, so a test only
ever sees the SQLite file it created itself.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
for _p in (_ROOT / "packages", _ROOT / "libs" / "ledger_db" / "src", _ROOT):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))


@pytest.fixture(autouse=True)
def _isolate_database(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    yield
    from ledger_db.client import dispose_engines

    dispose_engines()


@pytest.fixture
def data_dir() -> Path:
    return Path(__file__).resolve().parent / "data"


@pytest.fixture(autouse=True)
def _reset_logging(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Undo ``configure_logging`` from CLI tests so ``caplog`` keeps working."""

    import logging

    import statement_import.logging_setup as logging_setup

    pkg_logger = logging.getLogger("statement_import")
    saved = (list(pkg_logger.handlers), pkg_logger.level, pkg_logger.propagate)
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    pkg_logger.handlers[:] = saved[0]
    pkg_logger.setLevel(saved[1])
    pkg_logger.propagate = saved[2]
