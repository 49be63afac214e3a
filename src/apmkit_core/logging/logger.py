import logging
import sys
from datetime import datetime
from typing import Optional

from apmkit_core.models.config import ApmConfig

AGENT_LOGGER_NAME = 'apmkit'


def create_isolated_logger(name: str, level: int = logging.ERROR,
                          log_format: Optional[str] = None,
                          propagate: bool = False,
                          add_console_handler: bool = True,
                          add_file_handler: bool = False,
                          file_path: Optional[str] = None) -> logging.Logger:
    """
    Create an isolated logger that doesn't interfere with the host application loggers.

    Args:
        name: Logger name (should be unique to your application)
        level: Logging level (default: logging.ERROR)
        log_format: Custom log format string
        propagate: Whether to propagate to parent loggers (default: False)
        add_console_handler: Add console output handler (default: True)
        add_file_handler: Add file output handler (default: False)
        file_path: Path for log file (defaults to <name>_<date>.log)

    Returns:
        Configured logger instance
    """

    logger = logging.getLogger(name)
    logger.propagate = propagate
    logger.setLevel(level)

    # Avoid duplicated output when the logger is configured twice
    logger.handlers.clear()

    if log_format is None:
        log_format = '[%(asctime)s] %(name)s - %(levelname)s - %(message)s'

    formatter = logging.Formatter(log_format)

    if not add_console_handler and not add_file_handler:
        null_handler = logging.NullHandler()
        null_handler.setLevel(level)
        null_handler.setFormatter(formatter)
        logger.addHandler(null_handler)

    if add_console_handler:
        # The agent runs inside other programs, keep stdout for them
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if add_file_handler:
        if file_path is None:
            file_path = f"{name}_{datetime.now().strftime('%Y%m%d')}.log"

        file_handler = logging.FileHandler(file_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def create_null_logger(name: str, level: int = logging.ERROR) -> logging.Logger:
    """
    Create a logger that do not store or output any log messages.

    Args:
        name: Logger name (should be unique to your application)
        level: Logging level (default: logging.ERROR)

    Returns:
        Configured logger instance
    """

    return create_isolated_logger(name=name, level=level, add_console_handler=False, add_file_handler=False)


def configure_logger(config: ApmConfig, name: str = AGENT_LOGGER_NAME) -> logging.Logger:
    """
    Create the agent logger from the configured level and log file.

    Args:
        config: The agent configuration
        name: Logger name (default: apmkit)

    Returns:
        Configured logger instance
    """

    level = config.logging_level if config.logging_level is not None else logging.INFO

    return create_isolated_logger(
        name=name,
        level=level,
        add_console_handler=config.logging_file is None,
        add_file_handler=config.logging_file is not None,
        file_path=config.logging_file,
    )
