"""
ProductionSwap - keeps the real database out of reach of a test run.

NORMAL → BACKED_UP → NORMAL

save_production() renames the live database to <name>_production_backup
and creates an empty database under the live name; restore_production()
drops the test database and renames the backup back.

Exactly one of "live database is the real one" and "real database sits
under the backup name" holds during a session.
"""

import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .config import DEFAULT_BACKUP_SUFFIX
from .db.executor import SqlExecutor
from .errors import NoBackupFoundError
from .ui.console import ReloaderConsole


class SwapState(str, Enum):
    """Where the real database currently lives."""
    NORMAL = "NORMAL"          # under its own name
    BACKED_UP = "BACKED_UP"    # under the backup name


TRANSITIONS: Dict[SwapState, List[SwapState]] = {
    SwapState.NORMAL: [SwapState.BACKED_UP],
    SwapState.BACKED_UP: [SwapState.NORMAL],
}


@dataclass(frozen=True)
class DatabaseIdentity:
    """Live database name and the name its backup is kept under."""
    name: str
    backup_name: str

    @classmethod
    def for_database(cls, name: str, suffix: str = DEFAULT_BACKUP_SUFFIX) -> "DatabaseIdentity":
        return cls(name=name, backup_name=f"{name}{suffix}")


class ProductionSwap:
    """Renames the live database aside for a test session and back."""

    def __init__(
        self,
        executor: SqlExecutor,
        identity: Optional[DatabaseIdentity] = None,
        maintenance_database: Optional[str] = None,
        console: Optional[ReloaderConsole] = None,
    ):
        """
        Initialize production swap.

        The backup's existence is probed once here; from then on only
        save_production()/restore_production() change the state.

        Args:
            executor: Executor connected to the live database
            identity: Live/backup names (default: derived from executor)
            maintenance_database: Database to connect to while renaming
            console: Operator console for warnings
        """
        self.executor = executor
        self.identity = identity or DatabaseIdentity.for_database(executor.database_name)
        self.maintenance_database = maintenance_database or executor.config.maintenance_database
        self.console = console or ReloaderConsole()

        self._state = (
            SwapState.BACKED_UP
            if self._database_exists(self.identity.backup_name)
            else SwapState.NORMAL
        )

    @property
    def state(self) -> SwapState:
        """Get current state."""
        return self._state

    def _transition(self, to_state: SwapState) -> None:
        if to_state not in TRANSITIONS[self._state]:
            raise ValueError(
                f"Invalid transition: {self._state.name} → {to_state.name}"
            )
        self._state = to_state

    # =========================================================================
    # Core Operations
    # =========================================================================

    def save_production(self) -> bool:
        """
        Move the live database to the backup name and create an empty one.

        If a backup already exists (a previous run died before restoring),
        nothing is done: the current database is probably a broken test
        state and must not overwrite the real backup. The next completed
        run restores the backup and the database becomes normal again.

        Returns:
            True if the swap was performed, False if a backup was kept
        """
        name, backup = self.identity.name, self.identity.backup_name

        if self._state is SwapState.BACKED_UP:
            self.console.warning(
                f"Backup database '{backup}' already exists; leaving '{name}' as is. "
                "It may still hold test data from an interrupted run."
            )
            return False

        self._terminate_connections(name)
        self.executor.reconnect(self.maintenance_database)
        self.executor.execute(
            f"ALTER DATABASE {self.executor.escape_identifier(name)} "
            f"RENAME TO {self.executor.escape_identifier(backup)}"
        )
        self._transition(SwapState.BACKED_UP)

        self.executor.execute(f"CREATE DATABASE {self.executor.escape_identifier(name)}")
        self.executor.reconnect(name)

        self.console.debug(f"Production database moved to [bold]{backup}[/]")
        return True

    def restore_production(self) -> None:
        """
        Drop the test database and move the backup back to the live name.

        Raises:
            NoBackupFoundError: If no backup exists
        """
        name, backup = self.identity.name, self.identity.backup_name

        if self._state is not SwapState.BACKED_UP:
            raise NoBackupFoundError(
                f"Cannot restore production database '{name}': no backup found"
            )

        self._terminate_connections(name)
        self.executor.reconnect(self.maintenance_database)
        self.executor.execute(f"DROP DATABASE IF EXISTS {self.executor.escape_identifier(name)}")
        self.executor.execute(
            f"ALTER DATABASE {self.executor.escape_identifier(backup)} "
            f"RENAME TO {self.executor.escape_identifier(name)}"
        )
        self._transition(SwapState.NORMAL)
        self.executor.reconnect(name)

        self.console.debug(f"Production database [bold]{name}[/] restored")

    # =========================================================================
    # Server helpers
    # =========================================================================

    def _database_exists(self, dbname: str) -> bool:
        return bool(self.executor.cell(
            "SELECT datname FROM pg_catalog.pg_database "
            "WHERE NOT datistemplate AND datname = %s",
            (dbname,),
        ))

    def _terminate_connections(self, dbname: str) -> None:
        """A database cannot be renamed or dropped while others are connected."""
        self.executor.execute(
            "SELECT pg_catalog.pg_terminate_backend(pid) "
            "FROM pg_catalog.pg_stat_activity "
            "WHERE datname = %s AND pid <> pg_catalog.pg_backend_pid()",
            (dbname,),
        )


def _raise_system_exit(signum, frame):
    raise SystemExit(128 + signum)


@contextmanager
def production_backup(swap: ProductionSwap) -> Iterator[ProductionSwap]:
    """
    Hold the production backup for the duration of a block.

    The backup is restored on every exit path. SIGTERM is turned into
    SystemExit while the block runs (main thread only) so a terminated
    test run still restores. While restoring, SIGTERM is ignored so a
    second signal cannot abandon the rename half way.
    """
    previous_handler = None
    install_handler = threading.current_thread() is threading.main_thread()
    if install_handler:
        previous_handler = signal.signal(signal.SIGTERM, _raise_system_exit)
        if previous_handler is None:
            previous_handler = signal.SIG_DFL

    try:
        swap.save_production()
        yield swap
    finally:
        try:
            # NORMAL here means save_production() failed before the rename
            if swap.state is SwapState.BACKED_UP:
                if install_handler:
                    signal.signal(signal.SIGTERM, signal.SIG_IGN)
                swap.restore_production()
        finally:
            if install_handler:
                signal.signal(signal.SIGTERM, previous_handler)
