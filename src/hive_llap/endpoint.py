"""
HiveServer2 JDBC endpoint resolution.

For the configured HiveServer2 JDBC URL, attach the authentication suffix
if needed.

For kerberized clusters,

1. YARN cluster mode: ";auth=delegationToken"
2. YARN client mode: ";principal=hive/_HOST@EXAMPLE.COM"

Non-kerberized clusters,

3. Use the given URL.

Any `${user}` placeholder in the result is replaced with the effective user.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from .conf import (
    HIVESERVER2_CREDENTIAL_ENABLED,
    HIVESERVER2_JDBC_URL,
    HIVESERVER2_JDBC_URL_PRINCIPAL,
    ConfRegistry,
)
from .context import get_logger
from .exceptions import ConfigurationError
from .identity import IdentityResolver

logger = get_logger("endpoint")

USER_PLACEHOLDER = "${user}"
DELEGATION_TOKEN_SUFFIX = ";auth=delegationToken"


class AuthMode(str, Enum):
    DELEGATION_TOKEN = "delegationToken"
    PRINCIPAL = "principal"
    NONE = "none"


@dataclass(frozen=True)
class ConnectionEndpoint:
    """A resolved JDBC connection string."""

    url: str
    auth_mode: AuthMode = AuthMode.NONE

    def __str__(self) -> str:
        return self.url


class HiveServer2Settings(BaseModel):
    """HiveServer2 connection settings

    Attributes:
        url: base JDBC URL, e.g. jdbc:hive2://host:10000/default
        principal: kerberos principal used in YARN client mode (optional)
        credential_enabled: whether the HiveServer2 credential provider hands out
            delegation tokens (YARN cluster mode)
    """

    url: str
    principal: Optional[str] = None
    credential_enabled: bool = False

    @classmethod
    def from_conf(cls, conf: ConfRegistry) -> "HiveServer2Settings":
        if not conf.contains(HIVESERVER2_JDBC_URL.key):
            raise ConfigurationError(
                "Spark conf does not contain config " + HIVESERVER2_JDBC_URL.key
            )
        return cls(
            url=conf.get(HIVESERVER2_JDBC_URL.key),
            principal=conf.get(HIVESERVER2_JDBC_URL_PRINCIPAL.key),
            credential_enabled=conf.get_boolean(
                HIVESERVER2_CREDENTIAL_ENABLED.key,
                HIVESERVER2_CREDENTIAL_ENABLED.default,
            ),
        )

    @property
    def auth_mode(self) -> AuthMode:
        if self.credential_enabled:
            return AuthMode.DELEGATION_TOKEN
        elif self.principal is not None:
            return AuthMode.PRINCIPAL
        return AuthMode.NONE

    def get_connection_string(self) -> str:
        """Base URL with the suffix of the authentication mode applied."""
        mode = self.auth_mode
        if mode is AuthMode.DELEGATION_TOKEN:
            return self.url + DELEGATION_TOKEN_SUFFIX
        elif mode is AuthMode.PRINCIPAL:
            return "{};principal={}".format(self.url, self.principal)
        return self.url


class EndpointResolver:
    """
    Builds the `ConnectionEndpoint` from the current configuration.

    Nothing is cached: every call reads the configuration again, so changes
    made between calls are picked up.
    """

    def __init__(self, conf: ConfRegistry, identity: IdentityResolver):
        self.conf = conf
        self.identity = identity

    def resolve(self) -> ConnectionEndpoint:
        settings = HiveServer2Settings.from_conf(self.conf)
        url = settings.get_connection_string()
        if USER_PLACEHOLDER in url:
            url = url.replace(USER_PLACEHOLDER, self.identity.resolve_user() or "")
        logger.debug(
            "Resolved HiveServer2 endpoint %s (auth mode: %s)",
            url,
            settings.auth_mode.value,
        )
        return ConnectionEndpoint(url=url, auth_mode=settings.auth_mode)
