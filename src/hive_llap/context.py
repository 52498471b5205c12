import logging
import os
import sys

from decouple import AutoConfig

from .configuration import DEFAULT_CONFIG, Config, load_configuration

CONFIG_BASE_URL = os.getenv(
    "HIVE_LLAP_BASE_CONFIG_PATH", os.path.join(os.path.expanduser("~"), ".hive_llap")
)
decouple_config = AutoConfig(search_path=CONFIG_BASE_URL)
USER_CONFIG = decouple_config(
    "HIVE_LLAP_USER_CONFIG_PATH", default="~/.hive_llap/config.toml"
)
ENV_VAR_PREFIX = "HIVE_LLAP"


def load_default_config() -> Config:
    return load_configuration(
        path=DEFAULT_CONFIG,
        user_config_path=USER_CONFIG,
        env_var_prefix=ENV_VAR_PREFIX,
    )


def _create_logger(name: str) -> logging.Logger:
    """
    Creates a logger with a stdout `StreamHandler` whose level and format come
    from the `[logging]` section of the configuration.

    Args:
        - name (str): name to use for the logger

    Returns:
        - logging.Logger: a configured logging object
    """
    logger = logging.getLogger(name)

    formatter = logging.Formatter(config.logging.format, config.logging.datefmt)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    logger.setLevel(config.logging.level)

    return logger


def configure_logging(testing: bool = False) -> logging.Logger:
    """
    Creates the "hive_llap" root logger.

    Args:
        - testing (bool, optional): configure a "hive_llap-test-logger" instead so
            tests do not touch the global logger

    Returns:
        - logging.Logger: a configured logging object
    """
    name = "hive_llap-test-logger" if testing else "hive_llap"

    return _create_logger(name)


def get_logger(name: str = None) -> logging.Logger:
    """
    Returns the root hive_llap logger, or a child of it when `name` is given.
    """
    if name is None:
        return hive_llap_logger
    else:
        return hive_llap_logger.getChild(name)


config = load_default_config()
hive_llap_logger = configure_logging()

logger = get_logger()
logger.propagate = False
