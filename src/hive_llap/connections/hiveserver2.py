"""
HiveServer2 connection factory.

Connections go through the Hive JDBC driver loaded in the Spark driver JVM,
reached with py4j, so no Python-side Hive client is needed. The driver jar
(hive-jdbc) has to be on the Spark driver classpath.
"""
from typing import Any, Callable, Optional

from pyspark.sql import SparkSession

from ..context import config, get_logger
from ..exceptions import BackendExecutionError

logger = get_logger("connections.hiveserver2")


class JdbcRowCursor:
    """
    Rows of a JDBC `ResultSet`.

    `close()` releases both the result set and the statement that produced it.
    """

    def __init__(self, statement: Any, result_set: Any):
        self._statement = statement
        self._result_set = result_set

    def next(self) -> bool:
        return bool(self._result_set.next())

    def get_string(self, column_index: int) -> Optional[str]:
        """Value of a column of the current row; indexes start at 1."""
        return self._result_set.getString(column_index)

    def close(self) -> None:
        try:
            self._result_set.close()
        finally:
            self._statement.close()


class HiveServer2Connection:
    """Live connection to a HiveServer2 endpoint."""

    def __init__(self, jdbc_connection: Any, url: str):
        self._conn = jdbc_connection
        self.url = url
        self.closed = False

    def _create_statement(self) -> Any:
        if self.closed:
            raise BackendExecutionError(
                "HiveServer2 connection to {} is closed".format(self.url)
            )
        return self._conn.createStatement()

    def execute_query(self, sql: str) -> JdbcRowCursor:
        statement = self._create_statement()
        try:
            result_set = statement.executeQuery(sql)
        except Exception:
            statement.close()
            raise
        return JdbcRowCursor(statement, result_set)

    def execute_update(self, sql: str) -> int:
        statement = self._create_statement()
        try:
            return statement.executeUpdate(sql)
        finally:
            statement.close()

    def close(self) -> None:
        if not self.closed:
            self._conn.close()
            self.closed = True

    def __repr__(self) -> str:
        return "HiveServer2Connection({!r}, closed={})".format(self.url, self.closed)


def create_hiveserver2_connection(
    spark: SparkSession,
    url: str,
    user: Optional[str],
    password: Optional[str] = None,
    driver: Optional[str] = None,
) -> HiveServer2Connection:
    """Open a JDBC connection to HiveServer2 from the Spark driver JVM.

    Args:
        spark: active SparkSession whose JVM has the Hive JDBC driver
        url: resolved JDBC URL
        user: user name sent with the connection; `None` sends an empty user
        password: defaults to `[hiveserver2] password` from the configuration
        driver: JDBC driver class, defaults to `[hiveserver2] driver`

    Returns:
        HiveServer2Connection
    """
    driver = driver or config.hiveserver2.driver
    if password is None:
        password = str(config.hiveserver2.password)

    jvm = spark.sparkContext._jvm
    jvm.java.lang.Class.forName(driver)
    logger.info("Connecting to HiveServer2 at %s as %r", url, user or "")
    jdbc_connection = jvm.java.sql.DriverManager.getConnection(url, user or "", password)
    return HiveServer2Connection(jdbc_connection, url)


class ConnectionCache:
    """
    Lazily opens one connection and hands the same one back afterwards.

    The factory runs on the first `get_connection()` only, so endpoint and
    user are resolved at that moment and never again for this cache.

    Not safe for concurrent first access: two threads calling
    `get_connection()` on a fresh cache may both open a connection. Each
    context owns its own cache and is expected to be used from one thread.
    """

    def __init__(self, factory: Callable[[], Any]):
        self._factory = factory
        self._connection = None

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def get_connection(self) -> Any:
        if self._connection is None:
            self._connection = self._factory()
        return self._connection

    def close(self) -> None:
        """Closes the cached connection, if any; the next call reconnects."""
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()
