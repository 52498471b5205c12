"""
Effective user resolution.

The user is looked up lazily along a fallback chain:

1. the owning host's `get_user()` capability, when the host has one
2. the `HIVE_USER` setting (environment or a decouple settings file)
3. the operating system user

Not being able to tell who the user is never fails; the chain simply yields
`None`.
"""
import getpass
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from .context import config, decouple_config, get_logger

logger = get_logger("identity")


@runtime_checkable
class HasIdentity(Protocol):
    """Host contexts that can tell which user they run as."""

    def get_user(self) -> Optional[str]:
        ...


def get_system_user() -> Optional[str]:
    """Returns the `HIVE_USER` setting, or the OS user when it is unset."""
    user = decouple_config(config.identity.user_setting, default="")
    if user:
        return user
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError):
        logger.debug("Unable to determine the operating system user")
        return None


class IdentityResolver:
    """
    Resolves the user string embedded in the HiveServer2 connection.

    The host is checked for the `HasIdentity` capability once, when the
    resolver is built; later calls reuse that result.

    Args:
        host: the owning context
        system_user: fallback used when the host has no usable identity
    """

    def __init__(
        self,
        host: Any,
        system_user: Callable[[], Optional[str]] = get_system_user,
    ):
        self._get_host_user = host.get_user if isinstance(host, HasIdentity) else None
        self._system_user = system_user

    @property
    def has_capability(self) -> bool:
        return self._get_host_user is not None

    def resolve_user(self) -> Optional[str]:
        if self._get_host_user is not None:
            user = self._get_host_user()
            if user:
                return user
        return self._system_user()
