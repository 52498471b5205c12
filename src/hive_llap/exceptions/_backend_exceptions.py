class BackendExecutionError(Exception):
    """
    Exception raised when a statement cannot be run against a backend.
    """

    pass
