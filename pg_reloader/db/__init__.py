"""
Database access for pg_reloader.

Components:
- SqlExecutor: psycopg2 connection, queries, batches and escaping
- SchemaIntrospector: eligible tables, sequences and column flags
"""

from .executor import SqlExecutor, TextResult, Column
from .introspect import SchemaIntrospector, TableColumn

__all__ = [
    "SqlExecutor",
    "TextResult",
    "Column",
    "SchemaIntrospector",
    "TableColumn",
]
