"""
SnapshotStore - in-process named cache of generated dumps.

Entries live for the lifetime of the store (normally the test process);
nothing is persisted unless dump_to() is called explicitly.
"""

from pathlib import Path
from typing import Dict, List, Optional

from ..db.executor import SqlExecutor
from ..ui.console import ReloaderConsole
from .dump import DumpGenerator
from .models import Snapshot


class SnapshotStore:
    """Saves and replays snapshots by name."""

    def __init__(
        self,
        executor: SqlExecutor,
        generator: Optional[DumpGenerator] = None,
        console: Optional[ReloaderConsole] = None,
        dump_dir: Optional[Path] = None,
    ):
        """
        Initialize snapshot store.

        Args:
            executor: Executor used to replay snapshots
            generator: Dump generator used by capture()
            console: Operator console for progress messages
            dump_dir: If set, every captured snapshot is also written here
        """
        self.executor = executor
        self.generator = generator
        self.console = console or ReloaderConsole(quiet=True)
        self.dump_dir = Path(dump_dir) if dump_dir else None
        self._snapshots: Dict[str, Snapshot] = {}

    # =========================================================================
    # Core Operations
    # =========================================================================

    def save(
        self,
        name: str,
        statements: List[str],
        tables: List[str] = (),
        sequences: List[str] = (),
    ) -> Snapshot:
        """Store statements under a name, replacing any previous entry."""
        snapshot = Snapshot.create(name, statements, tables=tables, sequences=sequences)
        self._snapshots[name] = snapshot
        return snapshot

    def capture(self, name: str) -> Snapshot:
        """
        Dump the database's current contents and save them under a name.

        Raises:
            RuntimeError: If the store has no dump generator
        """
        if self.generator is None:
            raise RuntimeError("Dump generator required for capture")

        statements, tables, sequences = self.generator.generate_with_objects()
        snapshot = self.save(name, statements, tables=tables, sequences=sequences)

        self.console.debug(
            f"Captured snapshot [bold]{name}[/] "
            f"({len(tables)} tables, {len(sequences)} sequences)"
        )
        if self.dump_dir is not None:
            snapshot.save(self._snapshot_path(name))

        return snapshot

    def restore(self, name: str) -> bool:
        """
        Replay a snapshot.

        Returns:
            True if the snapshot existed and was applied, False otherwise
            (in which case the database is not touched)

        Raises:
            BatchExecutionError: If replay fails
        """
        snapshot = self._snapshots.get(name)
        if snapshot is None:
            return False

        self.executor.execute_batch(snapshot.statements)
        self.console.debug(f"Restored snapshot [bold]{name}[/]")
        return True

    # =========================================================================
    # Query Operations
    # =========================================================================

    def get(self, name: str) -> Optional[Snapshot]:
        """Get a snapshot by name."""
        return self._snapshots.get(name)

    def names(self) -> List[str]:
        """Snapshot names in insertion order."""
        return list(self._snapshots)

    def __contains__(self, name: str) -> bool:
        return name in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def dump_to(self, directory: Path) -> List[Path]:
        """Write every snapshot to <directory>/<name>.sql."""
        paths = []
        for name, snapshot in self._snapshots.items():
            path = Path(directory) / f"{self._safe_name(name)}.sql"
            snapshot.save(path)
            paths.append(path)
        return paths

    def _snapshot_path(self, name: str) -> Path:
        return self.dump_dir / f"{self._safe_name(name)}.sql"

    @staticmethod
    def _safe_name(name: str) -> str:
        return name.replace(" ", "-").replace("/", "-")
