"""Tests for statement classification and routing."""
from unittest.mock import MagicMock, call

import pytest

from hive_llap.router import CommandClassification, CommandRouter, classify


class FakeCursor:
    """Row cursor over a list of single-column rows."""

    def __init__(self, values, fail_at=None):
        self._values = list(values)
        self._position = -1
        self._fail_at = fail_at
        self.close_calls = 0

    def next(self):
        self._position += 1
        return self._position < len(self._values)

    def get_string(self, column_index):
        assert column_index == 1
        if self._fail_at is not None and self._position == self._fail_at:
            raise RuntimeError("broken row")
        return self._values[self._position]

    def close(self):
        self.close_calls += 1


@pytest.fixture
def backends():
    metadata = MagicMock(name="metadata")
    metadata.run_sql.return_value = ["metadata result"]
    execution = MagicMock(name="execution")
    execution.run_sql.return_value = ["execution result"]
    connection = MagicMock(name="connection")
    return metadata, execution, connection


@pytest.fixture
def router(backends):
    metadata, execution, connection = backends
    return CommandRouter(metadata, execution, lambda: connection)


class TestClassify:
    @pytest.mark.parametrize(
        "sql",
        [
            "CREATE FUNCTION my_udf AS 'com.example.MyUdf'",
            "create temporary function f as 'x.Y'",
            "  DROP FUNCTION my_udf  ",
            "drop temporary macro m",
            "CREATE TEMPORARY MACRO sigmoid (x DOUBLE) 1.0 / (1.0 + EXP(-x))",
            "create\n  temporary\n\tfunction f\nas 'x.Y'",
            "Create   Macro m(x int) x + 1",
        ],
    )
    def test_function_or_macro_ddl(self, sql):
        assert classify(sql) is CommandClassification.FUNCTION_OR_MACRO_DDL

    @pytest.mark.parametrize(
        "sql",
        [
            "create function",  # nothing after the keyword
            "create table functions (id int)",
            "create temporaryfunction f as 'x'",
            "select 'create function f as x'",
        ],
    )
    def test_not_function_or_macro_ddl(self, sql):
        assert classify(sql) is not CommandClassification.FUNCTION_OR_MACRO_DDL

    def test_leading_comment_is_generic_statement(self):
        sql = "-- c\ncreate function f as 'x'"
        assert classify(sql) is CommandClassification.GENERIC_STATEMENT

    @pytest.mark.parametrize(
        "sql", ["SET hive.exec.dynamic.partition=true", "  set", "set -v"]
    )
    def test_set_statement(self, sql):
        assert classify(sql) is CommandClassification.SET_STATEMENT

    @pytest.mark.parametrize("sql", ["SHOW TABLES", "  show databases", "Show Create Table t"])
    def test_show_query(self, sql):
        assert classify(sql) is CommandClassification.SHOW_QUERY

    @pytest.mark.parametrize(
        "sql",
        [
            "CREATE TABLE t (id INT)",
            "INSERT INTO t VALUES (1)",
            "DROP TABLE t",
            "select 1",
            "",
        ],
    )
    def test_generic_statement(self, sql):
        assert classify(sql) is CommandClassification.GENERIC_STATEMENT

    def test_prefix_heuristic_is_not_a_parser(self):
        assert classify("settings_report()") is CommandClassification.SET_STATEMENT


class TestFunctionOrMacroDDL:
    def test_routes_only_to_execution_backend(self, router, backends):
        metadata, execution, connection = backends
        sql = "CREATE TEMPORARY FUNCTION f AS 'com.example.F'"

        result = router.execute(sql)

        assert result == ["execution result"]
        execution.run_sql.assert_called_once_with(sql)
        metadata.run_sql.assert_not_called()
        assert connection.mock_calls == []

    def test_connection_never_requested(self, backends):
        metadata, execution, _ = backends
        provider = MagicMock()
        router = CommandRouter(metadata, execution, provider)

        router.execute("drop macro m")

        provider.assert_not_called()


class TestSetStatement:
    def test_runs_metadata_then_execution(self, backends):
        metadata, execution, connection = backends
        manager = MagicMock()
        manager.attach_mock(metadata, "metadata")
        manager.attach_mock(execution, "execution")
        router = CommandRouter(metadata, execution, lambda: connection)

        result = router.execute("SET a=b")

        assert manager.mock_calls == [
            call.metadata.run_sql("SET a=b"),
            call.execution.run_sql("SET a=b"),
        ]
        assert result == ["execution result"]
        assert connection.mock_calls == []

    def test_metadata_failure_propagates_and_skips_execution(self, router, backends):
        metadata, execution, _ = backends
        metadata.run_sql.side_effect = RuntimeError("metastore down")

        with pytest.raises(RuntimeError, match="metastore down"):
            router.execute("set x=1")

        execution.run_sql.assert_not_called()


class TestShowQuery:
    def test_returns_first_column_in_order(self, router, backends):
        _, _, connection = backends
        cursor = FakeCursor(["default", "sales", "marketing"])
        connection.execute_query.return_value = cursor

        result = router.execute("SHOW DATABASES")

        assert result == ["default", "sales", "marketing"]
        connection.execute_query.assert_called_once_with("SHOW DATABASES")
        assert cursor.close_calls == 1

    def test_empty_result(self, router, backends):
        _, _, connection = backends
        cursor = FakeCursor([])
        connection.execute_query.return_value = cursor

        assert router.execute("show tables") == []
        assert cursor.close_calls == 1

    def test_cursor_closed_when_extraction_fails(self, router, backends):
        _, _, connection = backends
        cursor = FakeCursor(["a", "b", "c"], fail_at=1)
        connection.execute_query.return_value = cursor

        with pytest.raises(RuntimeError, match="broken row"):
            router.execute("show tables")

        assert cursor.close_calls == 1

    def test_statement_passed_untouched(self, router, backends):
        _, _, connection = backends
        connection.execute_query.return_value = FakeCursor([])

        router.execute("  SHOW TABLES IN Sales  ")

        connection.execute_query.assert_called_once_with("  SHOW TABLES IN Sales  ")


class TestGenericStatement:
    def test_runs_update_and_returns_empty(self, router, backends):
        metadata, execution, connection = backends

        result = router.execute("CREATE TABLE t (id INT)")

        assert result == []
        connection.execute_update.assert_called_once_with("CREATE TABLE t (id INT)")
        metadata.run_sql.assert_not_called()
        execution.run_sql.assert_not_called()

    def test_update_failure_propagates(self, router, backends):
        _, _, connection = backends
        connection.execute_update.side_effect = ValueError("ParseException")

        with pytest.raises(ValueError, match="ParseException"):
            router.execute("CREAT TABLE oops")

        assert connection.execute_update.call_count == 1
