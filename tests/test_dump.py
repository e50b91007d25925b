"""
Unit tests for DumpGenerator.

Tests cover:
- Statement ordering (preamble, deletes, inserts, sequences)
- Empty tables and empty sequence sets
- Per-type escaping rules
- Skip-comment exclusion
- Generated and identity columns
"""

import pytest

from pg_reloader.errors import UnsupportedTypeError
from pg_reloader.snapshot.dump import PREAMBLE
from pg_reloader.snapshot.models import ValueKind

from tests.mocks import FakeSequence, FakeTable


class TestDumpGenerator:
    """Tests for DumpGenerator.generate()."""

    def test_preamble_comes_first(self, generator):
        """Environment statements open the dump."""
        statements = generator.generate()

        assert statements[:3] == list(PREAMBLE)
        assert "SET LOCAL session_replication_role = replica" in statements

    def test_all_deletes_precede_all_inserts(self, generator):
        """Every DELETE comes before the first INSERT."""
        statements = generator.generate()

        deletes = [i for i, s in enumerate(statements) if s.startswith("DELETE")]
        inserts = [i for i, s in enumerate(statements) if s.startswith("INSERT")]
        assert deletes == [3, 4]
        assert max(deletes) < min(inserts)

    def test_delete_for_every_table_insert_only_for_rows(self, generator):
        """Empty tables get a DELETE but no INSERT."""
        statements = generator.generate()

        assert 'DELETE FROM "public"."posts"' in statements
        assert 'DELETE FROM "public"."users"' in statements
        assert not any(s.startswith('INSERT INTO "public"."posts"') for s in statements)
        assert sum(1 for s in statements if s.startswith("INSERT")) == 1

    def test_insert_renders_rows(self, generator):
        """One multi-row INSERT with escaped values."""
        insert = next(s for s in generator.generate() if s.startswith("INSERT"))

        assert insert == (
            'INSERT INTO "public"."users"\n'
            '    ("id", "name", "active")\n'
            'VALUES\n'
            "    (1, 'alice', TRUE),\n"
            "    (2, 'o''brien', FALSE)"
        )

    def test_sequences_reset_in_one_statement(self, generator):
        """All sequences share a single setval SELECT."""
        last = generator.generate()[-1]

        assert last == (
            "SELECT\n"
            "    pg_catalog.setval('\"public\".\"posts_id_seq\"', 1, FALSE),\n"
            "    pg_catalog.setval('\"public\".\"users_id_seq\"', 2, TRUE)"
        )

    def test_no_sequences_no_statement(self, executor, generator):
        """Without eligible sequences nothing is emitted for them."""
        executor.sequences.clear()

        statements = generator.generate()

        assert not any("setval" in s for s in statements)
        assert not any("last_value" in q for q in executor.text_queries)

    def test_marked_objects_never_touched(self, executor, generator):
        """Skip-marked tables and sequences appear in no statement."""
        executor.tables["audit_log"] = FakeTable(
            columns=[("id", "int4")],
            rows=[("7",)],
            comment="@reloader-dump-skip",
        )
        executor.sequences["audit_log_id_seq"] = FakeSequence(
            last_value=7, is_called=True, comment="@reloader-dump-skip",
        )

        statements, tables, sequences = generator.generate_with_objects()

        assert not any("audit_log" in s for s in statements)
        assert "audit_log" not in tables
        assert "audit_log_id_seq" not in sequences

    def test_null_passes_through(self, executor, generator):
        """NULL is emitted verbatim whatever the column type."""
        executor.tables["users"].rows = [("3", None, None)]

        insert = next(s for s in generator.generate() if s.startswith("INSERT"))

        assert "(3, NULL, NULL)" in insert

    def test_unsupported_type_is_fatal(self, executor, generator):
        """Unknown column types raise instead of guessing."""
        executor.tables["shapes"] = FakeTable(
            columns=[("id", "int4"), ("area", "polygon")],
            rows=[("1", "((0,0),(1,1),(1,0))")],
        )

        with pytest.raises(UnsupportedTypeError) as exc_info:
            generator.generate()

        assert exc_info.value.type_name == "polygon"
        assert exc_info.value.table == "shapes"
        assert exc_info.value.column == "area"
        assert exc_info.value.value == "((0,0),(1,1),(1,0))"
        assert "((0,0),(1,1),(1,0))" in str(exc_info.value)

    def test_unsupported_type_reports_first_non_null_value(self, executor, generator):
        """The sample value in the error skips NULLs."""
        executor.tables["shapes"] = FakeTable(
            columns=[("id", "int4"), ("area", "polygon")],
            rows=[("1", None), ("2", "((0,0),(2,2),(2,0))")],
        )

        with pytest.raises(UnsupportedTypeError) as exc_info:
            generator.generate()

        assert exc_info.value.value == "((0,0),(2,2),(2,0))"

    def test_enum_columns_are_quoted(self, executor, generator):
        """Enum values are rendered as text literals."""
        executor.tables["users"] = FakeTable(
            columns=[("id", "int4"), ("role", "user_role")],
            rows=[("1", "admin")],
            enum_types={"user_role"},
        )

        insert = next(s for s in generator.generate() if s.startswith("INSERT"))

        assert "(1, 'admin')" in insert

    def test_generated_columns_left_out(self, executor, generator):
        """Stored generated columns are neither listed nor given values."""
        executor.tables["users"] = FakeTable(
            columns=[("id", "int4"), ("name", "text"), ("name_upper", "text")],
            rows=[("1", "alice", "ALICE")],
            generated={"name_upper"},
        )

        insert = next(s for s in generator.generate() if s.startswith("INSERT"))

        assert insert == (
            'INSERT INTO "public"."users"\n'
            '    ("id", "name")\n'
            'VALUES\n'
            "    (1, 'alice')"
        )

    def test_identity_always_overrides_system_value(self, executor, generator):
        """GENERATED ALWAYS identity columns keep their dumped values."""
        executor.tables["users"] = FakeTable(
            columns=[("id", "int8"), ("name", "text")],
            rows=[("5", "alice")],
            identity_always={"id"},
        )

        insert = next(s for s in generator.generate() if s.startswith("INSERT"))

        assert insert == (
            'INSERT INTO "public"."users"\n'
            '    ("id", "name")\n'
            'OVERRIDING SYSTEM VALUE\n'
            'VALUES\n'
            "    (5, 'alice')"
        )

    def test_identity_by_default_needs_no_override(self, executor, generator):
        """BY DEFAULT identity columns accept explicit values as they are."""
        executor.tables["users"] = FakeTable(
            columns=[("id", "int8"), ("name", "text")],
            rows=[("5", "alice")],
            identity_by_default={"id"},
        )

        insert = next(s for s in generator.generate() if s.startswith("INSERT"))

        assert "OVERRIDING" not in insert
        assert "(5, 'alice')" in insert


class TestEscape:
    """Tests for DumpGenerator.escape()."""

    @pytest.mark.parametrize("value,kind,expected", [
        ("hello", ValueKind.TEXT, "'hello'"),
        ("2024-01-31 10:00:00+00", ValueKind.TEXT, "'2024-01-31 10:00:00+00'"),
        ("42", ValueKind.NUMERIC, "42"),
        ("-3.25", ValueKind.NUMERIC, "-3.25"),
        ("NaN", ValueKind.NUMERIC, "'NaN'"),
        ("-Infinity", ValueKind.NUMERIC, "'-Infinity'"),
        ("t", ValueKind.BOOLEAN, "TRUE"),
        ("true", ValueKind.BOOLEAN, "TRUE"),
        ("f", ValueKind.BOOLEAN, "FALSE"),
        (None, ValueKind.BOOLEAN, "NULL"),
    ])
    def test_escape(self, generator, value, kind, expected):
        assert generator.escape(value, kind) == expected
