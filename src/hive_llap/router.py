"""
Statement routing between the local Spark backends and HiveServer2.

| Statement                         | Runs on                          | Returns                        |
|-----------------------------------|----------------------------------|--------------------------------|
| CREATE/DROP [TEMPORARY] FUNCTION  | execution backend                | execution backend output       |
| or MACRO                          |                                  |                                |
| SET ...                           | metadata, then execution backend | execution backend output       |
| SHOW ...                          | HiveServer2 query                | first column of every row      |
| anything else                     | HiveServer2 update               | empty list                     |

Statements are classified on their trimmed, lower-cased text with prefix
checks, not a parser: any text that merely starts with the letters "set" or
"show" is routed as a SET or SHOW statement.
"""
import re
from enum import Enum
from typing import Any, Callable, List

from .backends import SqlBackend
from .context import get_logger

logger = get_logger("router")

FUNCTION_OR_MACRO_DDL_PATTERN = re.compile(
    r"(create|drop)(\s+temporary)?\s+(function|macro).+", re.DOTALL
)


class CommandClassification(str, Enum):
    FUNCTION_OR_MACRO_DDL = "function_or_macro_ddl"
    SET_STATEMENT = "set_statement"
    SHOW_QUERY = "show_query"
    GENERIC_STATEMENT = "generic_statement"


def classify(sql: str) -> CommandClassification:
    """Classifies a statement; the checks run in a fixed order and the first match wins."""
    command = sql.strip().lower()
    if FUNCTION_OR_MACRO_DDL_PATTERN.fullmatch(command):
        return CommandClassification.FUNCTION_OR_MACRO_DDL
    elif command.startswith("set"):
        return CommandClassification.SET_STATEMENT
    elif command.startswith("show"):
        return CommandClassification.SHOW_QUERY
    return CommandClassification.GENERIC_STATEMENT


class CommandRouter:
    """
    Sends each statement to the backend that owns it.

    Args:
        metadata_backend: local metadata backend
        execution_backend: local execution backend
        connection_provider: returns the live HiveServer2 connection; only
            called for statements that go to HiveServer2

    Backend errors are not caught: they reach the caller as raised.
    """

    def __init__(
        self,
        metadata_backend: SqlBackend,
        execution_backend: SqlBackend,
        connection_provider: Callable[[], Any],
    ):
        self.metadata_backend = metadata_backend
        self.execution_backend = execution_backend
        self._connection_provider = connection_provider

    classify = staticmethod(classify)

    def execute(self, sql: str) -> List[str]:
        classification = classify(sql)
        logger.debug("Routing %s: %s", classification.value, sql)

        if classification is CommandClassification.FUNCTION_OR_MACRO_DDL:
            return self.execution_backend.run_sql(sql)
        elif classification is CommandClassification.SET_STATEMENT:
            self.metadata_backend.run_sql(sql)
            return self.execution_backend.run_sql(sql)
        elif classification is CommandClassification.SHOW_QUERY:
            return self._run_query(sql)

        self._connection_provider().execute_update(sql)
        return []

    def _run_query(self, sql: str) -> List[str]:
        cursor = self._connection_provider().execute_query(sql)
        try:
            result = []
            while cursor.next():
                result.append(cursor.get_string(1))
            return result
        finally:
            cursor.close()
