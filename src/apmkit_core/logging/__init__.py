from apmkit_core.logging.logger import (
    AGENT_LOGGER_NAME as AGENT_LOGGER_NAME,
    configure_logger as configure_logger,
    create_isolated_logger as create_isolated_logger,
    create_null_logger as create_null_logger,
)
