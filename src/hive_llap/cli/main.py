"""
hive-llap CLI - Main entry point

Usage:
    hive-llap version                 Show version information
    hive-llap url [--conf k=v]        Print the resolved HiveServer2 JDBC URL
    hive-llap sql STATEMENT           Route a statement and print its output
"""
import sys
from typing import Dict, List, Optional

import typer

from ..conf import ConfRegistry
from ..context import config
from ..endpoint import EndpointResolver
from ..exceptions import ConfigurationError
from ..identity import IdentityResolver

app = typer.Typer(
    name="hive-llap",
    help="Route Spark SQL statements and table reads to HiveServer2 / LLAP",
    add_completion=False,
)

CONF_OPTION_HELP = "Configuration entry as key=value, may be repeated"


def _get_version() -> str:
    from hive_llap import __version__

    return __version__


def _echo_error(message: str):
    """Print error message in red."""
    typer.echo(typer.style(f"✗ {message}", fg=typer.colors.RED), err=True)


def _parse_conf(entries: Optional[List[str]]) -> Dict[str, str]:
    conf = {}
    for entry in entries or []:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(
                f"expected key=value, got {entry!r}", param_hint="--conf"
            )
        conf[key.strip()] = value.strip()
    return conf


@app.command()
def version():
    """Show version information."""
    import pyspark

    typer.echo(f"hive-llap version: {_get_version()}")
    typer.echo(f"Python version: {sys.version.split()[0]}")
    typer.echo(f"PySpark version: {pyspark.__version__}")


@app.command()
def url(
    conf: Optional[List[str]] = typer.Option(
        None, "--conf", "-c", help=CONF_OPTION_HELP
    ),
):
    """Print the HiveServer2 JDBC URL the given configuration resolves to."""
    registry = ConfRegistry(config.get("conf", {})).with_overrides(_parse_conf(conf))
    resolver = EndpointResolver(registry, IdentityResolver(None))
    try:
        endpoint = resolver.resolve()
    except ConfigurationError as exc:
        _echo_error(str(exc))
        raise typer.Exit(1)
    typer.echo(endpoint.url)


@app.command()
def sql(
    statement: str = typer.Argument(..., help="SQL statement to run"),
    conf: Optional[List[str]] = typer.Option(
        None, "--conf", "-c", help=CONF_OPTION_HELP
    ),
):
    """Route a statement through a local Hive-enabled Spark session."""
    from pyspark.sql import SparkSession

    from ..session import LlapContext

    spark = (
        SparkSession.builder.appName("hive-llap-cli")
        .enableHiveSupport()
        .getOrCreate()
    )
    llap = None
    try:
        llap = LlapContext(spark, conf=_parse_conf(conf))
        for line in llap.run_sql_hive(statement):
            typer.echo("" if line is None else line)
    except Exception as e:
        _echo_error(f"Statement failed: {e}")
        raise typer.Exit(1)
    finally:
        if llap is not None:
            llap.stop()
        spark.stop()


if __name__ == "__main__":
    app()
