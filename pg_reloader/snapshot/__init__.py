"""
Snapshot/Restore system for pg_reloader.

Captures the row-level contents of a PostgreSQL database as replayable
SQL and restores it on demand:

- DumpGenerator: current contents -> ordered statements
- SnapshotStore: named in-process cache, save and replay
- Snapshot: immutable captured statements

Scope: table rows and sequence positions only (never schema).
"""

from .models import Snapshot, TableDescriptor, ValueKind, classify
from .dump import DumpGenerator
from .store import SnapshotStore

__all__ = [
    'Snapshot',
    'TableDescriptor',
    'ValueKind',
    'classify',
    'DumpGenerator',
    'SnapshotStore',
]
