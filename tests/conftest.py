"""Shared fixtures for pg_reloader unit tests."""

import io

import pytest
from rich.console import Console

from pg_reloader.db.introspect import SchemaIntrospector
from pg_reloader.snapshot.dump import DumpGenerator
from pg_reloader.snapshot.store import SnapshotStore
from pg_reloader.ui.console import ReloaderConsole

from tests.mocks import FakeExecutor, FakeSequence, FakeTable


@pytest.fixture
def executor():
    """Fake server with a small users/posts schema."""
    fake = FakeExecutor(name="app")
    fake.tables["users"] = FakeTable(
        columns=[("id", "int4"), ("name", "text"), ("active", "bool")],
        rows=[("1", "alice", "t"), ("2", "o'brien", "f")],
    )
    fake.tables["posts"] = FakeTable(
        columns=[("id", "int4"), ("user_id", "int4"), ("title", "varchar")],
    )
    fake.sequences["users_id_seq"] = FakeSequence(last_value=2, is_called=True)
    fake.sequences["posts_id_seq"] = FakeSequence(last_value=1, is_called=False)
    return fake


@pytest.fixture
def output():
    """Buffer capturing console output."""
    return io.StringIO()


@pytest.fixture
def console(output):
    """Verbose console writing into the output buffer."""
    return ReloaderConsole(
        verbose=True,
        console=Console(file=output, force_terminal=False, width=200),
    )


@pytest.fixture
def introspector(executor):
    return SchemaIntrospector(executor)


@pytest.fixture
def generator(executor, introspector):
    return DumpGenerator(executor, introspector)


@pytest.fixture
def store(executor, generator, console):
    return SnapshotStore(executor, generator=generator, console=console)
