"""
Logging setup for askfolio: one stdout handler on the root logger, with the
Bedrock and MCP client libraries held at WARNING so request bodies stay out of
debug output.
"""

import logging
import sys
from typing import Optional

from .config import AppConfig


def _level(config: AppConfig) -> int:
    return getattr(logging, config.log_level.upper(), logging.INFO)


def setup_logging(config: Optional[AppConfig] = None) -> None:
    """
    Configure the root logger from application config.

    Args:
        config: AppConfig instance, uses default if None
    """
    if config is None:
        from .config import config as default_config
        config = default_config

    level = _level(config)
    logging.basicConfig(level=level, format=config.log_format, handlers=[logging.StreamHandler(sys.stdout)])

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str, config: Optional[AppConfig] = None) -> logging.Logger:
    """
    Module logger at the application log level.

    Args:
        name: Logger name (usually __name__)
        config: AppConfig instance, uses default if None

    Returns:
        Logger for the module
    """
    if config is None:
        from .config import config as default_config
        config = default_config

    logger = logging.getLogger(name)
    logger.setLevel(_level(config))
    return logger
