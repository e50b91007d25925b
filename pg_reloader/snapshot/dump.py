"""
DumpGenerator - turns current table and sequence contents into SQL.

Statement order:
1. transaction-local settings (no timeout, UTF8, triggers disabled)
2. DELETE FROM every eligible table
3. one multi-row INSERT per non-empty table
4. one SELECT setval(...) over all eligible sequences

All deletes come before all inserts so circular foreign keys never
block clearing. Tables with a skip comment are never touched.
"""

from typing import List, Optional, Tuple

from ..db.executor import SqlExecutor, TextResult
from ..db.introspect import SchemaIntrospector
from .models import (
    NON_FINITE_NUMERICS,
    TRUTHY_TEXT,
    TableDescriptor,
    ValueKind,
)


PREAMBLE = (
    "SET LOCAL statement_timeout = 0",
    "SET LOCAL client_encoding = 'UTF8'",
    # disable triggers (and with them FK checks) while replaying
    "SET LOCAL session_replication_role = replica",
)


class DumpGenerator:
    """Generates replayable statements from live database contents."""

    def __init__(self, executor: SqlExecutor, introspector: SchemaIntrospector):
        self.executor = executor
        self.introspector = introspector

    @property
    def schema(self) -> str:
        return self.introspector.schema

    def generate(self) -> List[str]:
        """
        Dump eligible tables and sequences.

        Returns:
            Ordered statements reproducing the current contents
        """
        statements, _, _ = self.generate_with_objects()
        return statements

    def generate_with_objects(self) -> Tuple[List[str], List[str], List[str]]:
        """Like generate(), also returning the tables and sequences covered."""
        tables = self.introspector.list_tables()
        sequences = self.introspector.list_sequences()

        statements = list(PREAMBLE)

        for table in tables:
            statements.append(f"DELETE FROM {self._table_key(table)}")

        for table in tables:
            insert = self._table_insert(table)
            if insert is not None:
                statements.append(insert)

        sequence_reset = self._sequence_reset(sequences)
        if sequence_reset is not None:
            statements.append(sequence_reset)

        return statements, tables, sequences

    # =========================================================================
    # Tables
    # =========================================================================

    def _table_key(self, table: str) -> str:
        return self.executor.escape_identifier(self.schema, table)

    def _table_insert(self, table: str) -> Optional[str]:
        """Multi-row INSERT for a table, or None when it has no rows."""
        result: TextResult = self.executor.query_text(f"SELECT * FROM {self._table_key(table)}")
        if not result.rows:
            return None

        # generated columns cannot be inserted into; identity ALWAYS needs an override
        flags = self.introspector.list_columns(table)
        generated = {c.name for c in flags if c.is_generated}
        overriding = any(c.is_identity_always for c in flags)

        keep = [i for i, c in enumerate(result.columns) if c.name not in generated]
        columns = [result.columns[i] for i in keep]
        rows = [tuple(row[i] for i in keep) for row in result.rows]

        descriptor = TableDescriptor.from_columns(table, columns, rows)

        field_list = ", ".join(self.executor.escape_identifier(f) for f in descriptor.field_names)
        values = []
        for row in rows:
            rendered = [
                self.escape(value, kind)
                for value, kind in zip(row, descriptor.field_kinds)
            ]
            values.append(f"    ({', '.join(rendered)})")

        return (
            f"INSERT INTO {self._table_key(table)}\n"
            f"    ({field_list})\n"
            + ("OVERRIDING SYSTEM VALUE\n" if overriding else "")
            + "VALUES\n" + ",\n".join(values)
        )

    def escape(self, value: Optional[str], kind: ValueKind) -> str:
        """Render one text value according to its column's rule."""
        if value is None:
            return "NULL"

        if kind is ValueKind.TEXT:
            return self.executor.escape_literal(value)
        if kind is ValueKind.NUMERIC:
            if value in NON_FINITE_NUMERICS:
                return self.executor.escape_literal(value)
            return value
        if kind is ValueKind.BOOLEAN:
            return "TRUE" if value in TRUTHY_TEXT else "FALSE"

        raise AssertionError(f"unhandled value kind {kind!r}")

    # =========================================================================
    # Sequences
    # =========================================================================

    def _sequence_reset(self, sequences: List[str]) -> Optional[str]:
        """One SELECT resetting every sequence, or None when there are none."""
        if not sequences:
            return None

        selects = []
        for name in sequences:
            selects.append(
                f"SELECT {self.executor.escape_literal(name)} AS sequence_name, "
                f"last_value, is_called FROM {self._table_key(name)}"
            )
        result = self.executor.query_text(" UNION ALL ".join(selects))

        exprs = []
        for sequence_name, last_value, is_called in result.rows:
            regclass = self.executor.escape_literal(self._table_key(sequence_name))
            exprs.append(
                f"pg_catalog.setval({regclass}, {last_value}, "
                f"{'TRUE' if is_called in TRUTHY_TEXT else 'FALSE'})"
            )

        return "SELECT\n    " + ",\n    ".join(exprs)
