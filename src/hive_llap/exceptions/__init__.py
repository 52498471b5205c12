from ._backend_exceptions import BackendExecutionError
from ._catalog_exceptions import UnexpectedRelationKind
from ._configuration_exceptions import ConfigurationError
