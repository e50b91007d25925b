"""
Mock components for testing pg_reloader.

These fakes model a PostgreSQL server in memory so the reloader can be
exercised without a database. Tests against a real server live in
tests/integration and run only when PG_RELOADER_TEST_URI is set.
"""

from .fake_db import FakeExecutor, FakeTable, FakeSequence

__all__ = [
    'FakeExecutor',
    'FakeTable',
    'FakeSequence',
]
