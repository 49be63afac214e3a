"""Facade for accessing the APM agent."""

from typing import Optional, Union

from apmkit_core.agent import ApmAgent
from apmkit_core.models import ApmConfig, TraceContext
from apmkit_core.session import TraceSession
from apmkit_core.sinks import Sink


class Apm:
    """Static facade for accessing the APM agent.

    This class maintains a single ApmAgent instance, built from the environment
    configuration on first use, and provides static methods to create sessions.

    Example
    -------
    Trace a request with the default agent:
    >>> session = Apm.session()
    >>> session.start_transaction('GET /orders', 'request')
    >>> session.stop_transaction()

    Use a custom configuration:
    >>> Apm.configure(ApmConfig(app_name='shop', transport='memory'))
    """

    # Private class variable to hold the ApmAgent instance
    _agent: Optional[ApmAgent] = None

    def __new__(cls):
        """Prevent instantiation of this static class."""
        raise TypeError(f'{cls.__name__} is a static class and cannot be instantiated')

    @classmethod
    def agent(cls) -> ApmAgent:
        """Get or create the ApmAgent instance.

        Returns
        -------
        ApmAgent
            The singleton instance of ApmAgent
        """
        if cls._agent is None:
            cls._agent = ApmAgent()
        return cls._agent

    @classmethod
    def configure(
        cls,
        config: Optional[ApmConfig] = None,
        sink: Optional[Sink] = None,
        context: Union[TraceContext, dict, None] = None,
    ) -> ApmAgent:
        """Replace the agent with one built from the given configuration, sink and
        default context.

        The previous agent, if any, is shut down.

        Returns
        -------
        ApmAgent
            The new agent
        """
        cls.reset()
        cls._agent = ApmAgent(config=config, context=context, sink=sink)
        return cls._agent

    @classmethod
    def config(cls) -> ApmConfig:
        """Get the agent configuration."""
        return cls.agent().config

    @classmethod
    def session(cls) -> TraceSession:
        """Create a new session for a unit of work."""
        return cls.agent().new_session()

    @classmethod
    def reset(cls) -> None:
        """Shut down and forget the current agent."""
        if cls._agent is not None:
            cls._agent.shutdown()
        cls._agent = None
