__version__ = "0.1.0"

from .catalog import LlapCatalog, TableIdentifier
from .conf import ConfRegistry
from .endpoint import AuthMode, ConnectionEndpoint, EndpointResolver
from .exceptions import (
    BackendExecutionError,
    ConfigurationError,
    UnexpectedRelationKind,
)
from .identity import HasIdentity, IdentityResolver
from .router import CommandClassification, CommandRouter
from .session import LlapContext

__all__ = [
    "__version__",
    "LlapContext",
    "LlapCatalog",
    "TableIdentifier",
    "ConfRegistry",
    "AuthMode",
    "ConnectionEndpoint",
    "EndpointResolver",
    "HasIdentity",
    "IdentityResolver",
    "CommandClassification",
    "CommandRouter",
    # Exceptions
    "BackendExecutionError",
    "ConfigurationError",
    "UnexpectedRelationKind",
]
