"""
Catalog lookups that read metastore tables through HiveServer2.

`LlapCatalog` asks the native Spark catalog what a table name refers to,
then swaps the metastore table for a relation loaded through the LLAP data
source, so that reading it goes to HiveServer2 instead of the warehouse
files.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.types import StructType

from .context import get_logger
from .exceptions import UnexpectedRelationKind

logger = get_logger("catalog")

LLAP_SOURCE_NAME = "org.apache.spark.sql.hive.llap"


@dataclass(frozen=True)
class TableIdentifier:
    table: str
    database: Optional[str] = None

    @classmethod
    def parse(cls, name: str) -> "TableIdentifier":
        """Parses `table` or `database.table`."""
        database, _, table = name.strip().rpartition(".")
        return cls(table=table, database=database or None)

    @property
    def unquoted_string(self) -> str:
        if self.database:
            return "{}.{}".format(self.database, self.table)
        return self.table


# Relations the native catalog can resolve a name to


@dataclass(frozen=True)
class MetastoreRelation:
    database: str
    table: str
    alias: Optional[str] = None


@dataclass(frozen=True)
class ViewRelation:
    database: Optional[str]
    table: str


@dataclass(frozen=True)
class TemporaryRelation:
    table: str


NativeRelation = Union[MetastoreRelation, ViewRelation, TemporaryRelation]


# Plans produced by the rewrite


@dataclass(frozen=True)
class LogicalRelation:
    relation: Any
    source: str = LLAP_SOURCE_NAME


@dataclass(frozen=True)
class SubqueryAlias:
    alias: str
    child: Union["SubqueryAlias", LogicalRelation]

    @property
    def aliases(self) -> List[str]:
        """Alias names from the outermost wrap inwards."""
        names = [self.alias]
        if isinstance(self.child, SubqueryAlias):
            names.extend(self.child.aliases)
        return names

    def to_dataframe(self) -> DataFrame:
        """The wrapped relation with every alias level applied, innermost first."""
        if isinstance(self.child, SubqueryAlias):
            df = self.child.to_dataframe()
        else:
            df = self.child.relation
        return df.alias(self.alias)


@dataclass
class ResolvedSource:
    relation: Any


class SparkCatalogResolver:
    """Resolves table names with `spark.catalog`."""

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def lookup_relation(
        self, identifier: TableIdentifier, alias: Optional[str] = None
    ) -> NativeRelation:
        table = self.spark.catalog.getTable(identifier.unquoted_string)
        if table.isTemporary:
            return TemporaryRelation(table=table.name)
        if (table.tableType or "").upper() == "VIEW":
            return ViewRelation(database=table.database, table=table.name)
        return MetastoreRelation(database=table.database, table=table.name, alias=alias)


class SparkDataSourceResolver:
    """Loads a relation with `spark.read` for a named data source."""

    def __init__(self, spark: SparkSession):
        self.spark = spark

    def resolve(
        self,
        context: Any,
        schema: Optional[StructType] = None,
        partition_columns: Optional[List[str]] = None,
        source: str = LLAP_SOURCE_NAME,
        options: Optional[Dict[str, str]] = None,
    ) -> ResolvedSource:
        # partition columns only matter when writing, reads ignore them
        reader = self.spark.read.format(source).options(**(options or {}))
        if schema is not None:
            reader = reader.schema(schema)
        return ResolvedSource(relation=reader.load())


class LlapCatalog:
    """
    Table lookups backed by HiveServer2.

    Args:
        native: the catalog that knows the metastore, with
            `lookup_relation(identifier, alias)`
        context: owning `LlapContext`, used for the connection URL
        data_source_resolver: loads the LLAP relation, with
            `resolve(context, schema, partition_columns, source, options)`
    """

    def __init__(self, native: Any, context: Any, data_source_resolver: Any):
        self.native = native
        self.context = context
        self.data_source_resolver = data_source_resolver

    def lookup_relation(
        self,
        table_identifier: Union[TableIdentifier, str],
        alias: Optional[str] = None,
    ) -> SubqueryAlias:
        if isinstance(table_identifier, str):
            table_identifier = TableIdentifier.parse(table_identifier)

        relation = self.native.lookup_relation(table_identifier, alias)
        if not isinstance(relation, MetastoreRelation):
            raise UnexpectedRelationKind(relation)

        qualified_name = relation.database + "." + relation.table
        options = {"table": qualified_name, "url": self.context.get_connection_url()}
        logger.debug("Reading %s through %s", qualified_name, LLAP_SOURCE_NAME)
        resolved = self.data_source_resolver.resolve(
            self.context, None, [], LLAP_SOURCE_NAME, options
        )

        table_with_qualifiers = SubqueryAlias(
            table_identifier.table, LogicalRelation(resolved.relation)
        )
        if alias is None:
            return table_with_qualifiers
        return SubqueryAlias(alias, table_with_qualifiers)
