from typing import Any, List, Mapping, Optional

from pyspark.sql import DataFrame, SparkSession

from .backends import SparkSqlBackend, SqlBackend
from .catalog import LlapCatalog, SparkCatalogResolver, SparkDataSourceResolver
from .conf import ConfRegistry
from .connections.hiveserver2 import ConnectionCache, create_hiveserver2_connection
from .context import config, get_logger
from .endpoint import EndpointResolver
from .identity import IdentityResolver
from .router import CommandRouter

logger = get_logger("session")


class LlapContext:
    """
    A Spark SQL context whose metastore tables and most statements are served
    by HiveServer2 / LLAP.

    Function and macro DDL and SET statements stay on the local Spark
    backends; SHOW and every other statement go to HiveServer2, and table
    lookups are rewritten to read through the LLAP data source.

    Args:
        spark: the SparkSession hosting this context
        conf: extra configuration taking precedence over the Spark conf
        metadata_backend: local metadata backend, defaults to the Spark session
        execution_backend: local execution backend, defaults to the Spark session
        connector: `connector(context, url, user)` returning a live connection,
            defaults to a JDBC connection opened in the Spark driver JVM
        native_catalog: catalog resolving table names, defaults to `spark.catalog`
        data_source_resolver: loads relations for the LLAP data source
        is_root_context: whether this is the first context built on `spark`

    Example:
        ```python
        llap = LlapContext(
            spark, conf={"spark.sql.hive.hiveserver2.jdbc.url": "jdbc:hive2://llap:10500/"}
        )
        llap.run_sql_hive("SHOW DATABASES")
        llap.table("sales.orders", alias="o").show()
        ```

    Subclasses may implement `get_user()` to supply the user name sent to
    HiveServer2; it is checked once, when the context is built.
    """

    def __init__(
        self,
        spark: SparkSession,
        conf: Optional[Mapping[str, Any]] = None,
        metadata_backend: Optional[SqlBackend] = None,
        execution_backend: Optional[SqlBackend] = None,
        connector: Optional[Any] = None,
        native_catalog: Optional[Any] = None,
        data_source_resolver: Optional[Any] = None,
        is_root_context: bool = True,
    ):
        self.spark = spark
        self._conf_overrides = dict(conf or {})
        self.conf = ConfRegistry(
            self._conf_overrides,
            spark.conf,
            spark.sparkContext.getConf(),
            config.get("conf", {}),
        )
        self.metadata_backend = metadata_backend or SparkSqlBackend(spark)
        self.execution_backend = execution_backend or SparkSqlBackend(spark)
        self._connector = connector or _jdbc_connector
        self._native_catalog = native_catalog
        self._data_source_resolver = data_source_resolver
        self.is_root_context = is_root_context

        self.identity = IdentityResolver(self)
        self.endpoint_resolver = EndpointResolver(self.conf, self.identity)
        self.connection_cache = ConnectionCache(self._open_connection)
        self.router = CommandRouter(
            self.metadata_backend,
            self.execution_backend,
            self.connection_cache.get_connection,
        )
        self._catalog = None

    @property
    def catalog(self) -> LlapCatalog:
        if self._catalog is None:
            self._catalog = LlapCatalog(
                self._native_catalog or SparkCatalogResolver(self.spark),
                self,
                self._data_source_resolver or SparkDataSourceResolver(self.spark),
            )
        return self._catalog

    @property
    def connection(self) -> Any:
        return self.connection_cache.get_connection()

    def _open_connection(self) -> Any:
        return self._connector(self, self.get_connection_url(), self.get_user_string())

    def get_user_string(self) -> Optional[str]:
        return self.identity.resolve_user()

    def get_connection_url(self) -> str:
        return self.endpoint_resolver.resolve().url

    def run_sql_hive(self, sql: str) -> List[str]:
        return self.router.execute(sql)

    def table(self, name: str, alias: Optional[str] = None) -> DataFrame:
        """Reads a metastore table through HiveServer2."""
        return self.catalog.lookup_relation(name, alias).to_dataframe()

    def new_session(self) -> "LlapContext":
        """
        A child context with new backend sessions and its own connection; the
        parent's connection is never reused.
        """
        return type(self)(
            spark=self.spark.newSession(),
            conf=self._conf_overrides,
            metadata_backend=self.metadata_backend.new_session(),
            execution_backend=self.execution_backend.new_session(),
            connector=self._connector,
            native_catalog=self._native_catalog,
            data_source_resolver=self._data_source_resolver,
            is_root_context=False,
        )

    def stop(self) -> None:
        """Closes the HiveServer2 connection if one was opened."""
        if self.connection_cache.is_connected:
            logger.info("Closing HiveServer2 connection")
        self.connection_cache.close()

    def __repr__(self) -> str:
        return "<LlapContext root={}>".format(self.is_root_context)


def _jdbc_connector(context: LlapContext, url: str, user: Optional[str]) -> Any:
    return create_hiveserver2_connection(context.spark, url, user)
