"""
SchemaIntrospector - lists the tables and sequences that take part in dumps.

An object whose catalog comment contains the skip marker is excluded:

    COMMENT ON TABLE audit_log IS 'large, never changes @reloader-dump-skip';
"""

from dataclasses import dataclass
from typing import List

from ..config import DEFAULT_SKIP_COMMENT
from ..errors import IntrospectionError, QueryError
from .executor import SqlExecutor


RELATIONS_QUERY = """
    SELECT c.relname
    FROM pg_catalog.pg_class c
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    WHERE n.nspname = %s
      AND c.relkind = %s
      AND NOT EXISTS (
          SELECT 1
          FROM pg_catalog.pg_description d
          WHERE d.objoid = c.oid
            AND d.classoid = 'pg_catalog.pg_class'::regclass
            AND d.objsubid = 0
            AND strpos(d.description, %s) > 0
      )
    ORDER BY c.relname
"""

COLUMNS_QUERY = """
    SELECT a.attname, a.attidentity, a.attgenerated
    FROM pg_catalog.pg_attribute a
    JOIN pg_catalog.pg_class c ON c.oid = a.attrelid
    JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
    WHERE n.nspname = %s
      AND c.relname = %s
      AND a.attnum > 0
      AND NOT a.attisdropped
    ORDER BY a.attnum
"""

RELKIND_TABLE = "r"
RELKIND_SEQUENCE = "S"


@dataclass
class TableColumn:
    """Column flags that decide whether a value can be re-inserted."""
    name: str
    identity: str = ""     # 'a' always, 'd' by default
    generated: str = ""    # 's' stored

    @property
    def is_generated(self) -> bool:
        return bool(self.generated)

    @property
    def is_identity_always(self) -> bool:
        return self.identity == "a"


class SchemaIntrospector:
    """Finds eligible tables and sequences in one schema."""

    def __init__(
        self,
        executor: SqlExecutor,
        schema: str = "public",
        skip_comment: str = DEFAULT_SKIP_COMMENT,
    ):
        self.executor = executor
        self.schema = schema
        self.skip_comment = skip_comment

    def list_tables(self) -> List[str]:
        """Ordinary tables not marked with the skip comment, by name."""
        return self._list(RELKIND_TABLE)

    def list_sequences(self) -> List[str]:
        """Sequences not marked with the skip comment, by name."""
        return self._list(RELKIND_SEQUENCE)

    def _list(self, relkind: str) -> List[str]:
        try:
            return self.executor.column(
                RELATIONS_QUERY, (self.schema, relkind, self.skip_comment)
            )
        except QueryError as e:
            raise IntrospectionError(
                f"Cannot list relations of kind '{relkind}' in schema '{self.schema}': {e}",
                sql=e.sql,
                pgcode=e.pgcode,
            ) from e

    def list_columns(self, table: str) -> List[TableColumn]:
        """Columns of a table with their identity/generated flags, by position."""
        try:
            rows = self.executor.select(COLUMNS_QUERY, (self.schema, table))
        except QueryError as e:
            raise IntrospectionError(
                f"Cannot list columns of '{self.schema}.{table}': {e}",
                sql=e.sql,
                pgcode=e.pgcode,
            ) from e
        return [
            TableColumn(name=name, identity=identity or "", generated=generated or "")
            for name, identity, generated in rows
        ]
