"""
Configuration keys read by hive-llap and a small registry to read them.

The registry looks a key up in several sources in order: a `SparkConf`, a
Spark session's runtime conf (`spark.conf`), or any plain mapping all work,
since each of them offers `get(key, default)`.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class ConfEntry:
    """A documented configuration key."""

    key: str
    default: Any = None
    doc: str = ""


HIVESERVER2_JDBC_URL = ConfEntry(
    key="spark.sql.hive.hiveserver2.jdbc.url",
    doc="HiveServer2 JDBC URL.",
)

HIVESERVER2_JDBC_URL_PRINCIPAL = ConfEntry(
    key="spark.sql.hive.hiveserver2.jdbc.url.principal",
    doc="HiveServer2 JDBC Principal.",
)

HIVESERVER2_CREDENTIAL_ENABLED = ConfEntry(
    key="spark.yarn.security.credentials.hiveserver2.enabled",
    default=False,
    doc="When true, HiveServer2 credential provider is enabled.",
)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def to_boolean(key: str, value: Any) -> bool:
    """Parses a configuration value the way Spark reads boolean confs."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        "{} should be boolean, but was {!r}".format(key, value)
    )


class ConfRegistry:
    """
    Read-only view over one or more configuration sources; the first source
    holding a key wins.

    Example:
        ```python
        conf = ConfRegistry(spark.sparkContext.getConf(), {"spark.x": "1"})
        conf.contains("spark.x")  # True
        ```
    """

    def __init__(self, *sources: Any):
        self._sources = [source for source in sources if source is not None]

    def _lookup(self, key: str) -> Optional[Any]:
        for source in self._sources:
            value = source.get(key, None)
            if value is not None:
                return value
        return None

    def contains(self, key: str) -> bool:
        return self._lookup(key) is not None

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._lookup(key)
        if value is None:
            return default
        return str(value)

    def get_boolean(self, key: str, default: bool = False) -> bool:
        value = self._lookup(key)
        if value is None:
            return default
        return to_boolean(key, value)

    def with_overrides(self, overrides: Mapping[str, Any]) -> "ConfRegistry":
        """Returns a registry where `overrides` take precedence over this one."""
        return ConfRegistry(dict(overrides), *self._sources)

    def __repr__(self) -> str:
        return "<ConfRegistry: {} source(s)>".format(len(self._sources))
