"""
Local statement backends.

A backend runs one SQL statement and returns its output as a list of
strings, one per row, with columns separated by tabs (the shape the Hive
CLI prints).
"""
from typing import List, Protocol

from pyspark.sql import Row, SparkSession

from .context import get_logger

logger = get_logger("backends")


class SqlBackend(Protocol):
    def run_sql(self, sql: str) -> List[str]:
        ...

    def new_session(self) -> "SqlBackend":
        ...


def format_row(row: Row) -> str:
    return "\t".join("NULL" if value is None else str(value) for value in row)


class SparkSqlBackend:
    """
    Runs statements on a SparkSession.

    Example:
        ```python
        backend = SparkSqlBackend(spark)
        backend.run_sql("SET spark.sql.shuffle.partitions=4")
        # ['spark.sql.shuffle.partitions\t4']
        ```
    """

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def run_sql(self, sql: str) -> List[str]:
        logger.debug("Running statement on the local Spark session: %s", sql)
        return [format_row(row) for row in self.spark.sql(sql).collect()]

    def new_session(self) -> "SparkSqlBackend":
        """Backend on a new Spark session sharing this one's SparkContext."""
        return SparkSqlBackend(self.spark.newSession())

    def __repr__(self) -> str:
        return "SparkSqlBackend({!r})".format(self.spark)
