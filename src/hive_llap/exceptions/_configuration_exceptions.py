class ConfigurationError(Exception):
    """
    Exception raised when a required configuration value is missing or invalid.
    """

    pass
