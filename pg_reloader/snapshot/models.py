"""
Data models for the snapshot/restore system.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..db.executor import Column
from ..errors import UnsupportedTypeError


class ValueKind(str, Enum):
    """How a column's values are rendered into an INSERT."""
    TEXT = "TEXT"          # quoted literal
    NUMERIC = "NUMERIC"    # bare numeric literal
    BOOLEAN = "BOOLEAN"    # TRUE / FALSE keyword


# pg_type.typname -> rendering rule. Anything not listed is unsupported.
TYPE_KINDS: Dict[str, ValueKind] = {
    # character
    "text": ValueKind.TEXT,
    "varchar": ValueKind.TEXT,
    "bpchar": ValueKind.TEXT,
    "char": ValueKind.TEXT,
    "name": ValueKind.TEXT,
    "citext": ValueKind.TEXT,
    # date / time
    "timestamp": ValueKind.TEXT,
    "timestamptz": ValueKind.TEXT,
    "date": ValueKind.TEXT,
    "time": ValueKind.TEXT,
    "timetz": ValueKind.TEXT,
    "interval": ValueKind.TEXT,
    # other text-rendered types
    "uuid": ValueKind.TEXT,
    "inet": ValueKind.TEXT,
    "cidr": ValueKind.TEXT,
    "macaddr": ValueKind.TEXT,
    "json": ValueKind.TEXT,
    "jsonb": ValueKind.TEXT,
    "xml": ValueKind.TEXT,
    "bytea": ValueKind.TEXT,
    "geography": ValueKind.TEXT,
    "geometry": ValueKind.TEXT,
    # numeric
    "int2": ValueKind.NUMERIC,
    "int4": ValueKind.NUMERIC,
    "int8": ValueKind.NUMERIC,
    "numeric": ValueKind.NUMERIC,
    "float4": ValueKind.NUMERIC,
    "float8": ValueKind.NUMERIC,
    "oid": ValueKind.NUMERIC,
    # boolean
    "bool": ValueKind.BOOLEAN,
}

# Numeric text forms that are not valid bare literals
NON_FINITE_NUMERICS = {"NaN", "Infinity", "-Infinity"}

TRUTHY_TEXT = {"t", "true"}


def classify(column: Column, table: str = "", value: Optional[str] = None) -> ValueKind:
    """
    Pick the rendering rule for a column.

    value is a sample from the column, only used in the error message.

    Raises:
        UnsupportedTypeError: If the type has no rule
    """
    if column.is_enum:
        return ValueKind.TEXT
    try:
        return TYPE_KINDS[column.type_name]
    except KeyError:
        raise UnsupportedTypeError(
            column.type_name, table=table, column=column.name, value=value
        ) from None


@dataclass
class TableDescriptor:
    """A table's columns as seen while dumping it."""
    name: str
    field_names: List[str]
    field_kinds: List[ValueKind]

    @classmethod
    def from_columns(
        cls,
        name: str,
        columns: List[Column],
        rows: Sequence[Sequence[Optional[str]]] = (),
    ) -> "TableDescriptor":
        return cls(
            name=name,
            field_names=[c.name for c in columns],
            field_kinds=[
                classify(c, table=name, value=_first_value(rows, i))
                for i, c in enumerate(columns)
            ],
        )


def _first_value(rows, index: int) -> Optional[str]:
    return next((row[index] for row in rows if row[index] is not None), None)


@dataclass(frozen=True)
class Snapshot:
    """Replayable capture of table and sequence contents."""

    name: str
    statements: Tuple[str, ...]
    tables: Tuple[str, ...] = ()
    sequences: Tuple[str, ...] = ()
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @classmethod
    def create(
        cls,
        name: str,
        statements: List[str],
        tables: List[str] = (),
        sequences: List[str] = (),
    ) -> "Snapshot":
        return cls(
            name=name,
            statements=tuple(statements),
            tables=tuple(tables),
            sequences=tuple(sequences),
        )

    def to_sql(self) -> str:
        """Render as a SQL script."""
        header = f"-- pg_reloader snapshot '{self.name}' ({self.created_at})\n"
        return header + "".join(f"{stmt};\n" for stmt in self.statements)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def save(self, path: Path) -> None:
        """Write the SQL script to a file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_sql(), encoding="utf-8")
