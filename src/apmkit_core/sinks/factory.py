from logging import Logger
from typing import Optional

from apmkit_core.models import ApmConfig
from apmkit_core.sinks.abstract_sink import Sink
from apmkit_core.sinks.memory_sink import MemorySink
from apmkit_core.sinks.otlp_sink import OtlpSink


def create_sink(config: ApmConfig, logger: Optional[Logger] = None) -> Sink:
    """Create the sink selected by the configuration.

    Parameters
    ----------
    config : ApmConfig
        The agent configuration. `transport` selects the sink.
    logger : Logger, optional
        Logger handed to the sink.

    Returns
    -------
    Sink
        A `MemorySink` when the agent is disabled or the memory transport is
        selected, an `OtlpSink` otherwise.
    """
    if not config.enable or config.transport == 'memory':
        return MemorySink(logger=logger)

    if config.transport == 'otlp':
        return OtlpSink(config=config, logger=logger)

    raise ValueError(f'Transport [{config.transport}] not supported.')
