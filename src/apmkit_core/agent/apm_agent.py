from logging import Logger
from typing import Optional, Union

from apmkit_core.logging import configure_logger
from apmkit_core.models import ApmConfig, TraceContext
from apmkit_core.session import TraceSession
from apmkit_core.sinks import Sink, create_sink


class ApmAgent:
    """The configured APM agent.

    Holds the configuration, the default transaction context and the sink shared by
    the sessions it creates. Create one session per unit of work with `new_session`.

    Example
    -------
    >>> agent = ApmAgent(ApmConfig(app_name='shop'))
    >>> session = agent.new_session()
    >>> session.start_transaction('GET /cart', 'request')
    """

    def __init__(
        self,
        config: Optional[ApmConfig] = None,
        context: Union[TraceContext, dict, None] = None,
        sink: Optional[Sink] = None,
        logger: Optional[Logger] = None,
    ):
        """Create the agent.

        Parameters
        ----------
        config : ApmConfig, optional
            The agent configuration. Loaded from the environment if not provided.
        context : TraceContext | dict, optional
            Default user, custom and tags data. Empty if not provided.
        sink : Sink, optional
            Destination of the records. Built from the configuration if not provided.
        logger : Logger, optional
            The agent logger. Built from the configuration if not provided.

        Throws
        -------
        ValueError
            If the agent is enabled without an application name
        """
        self._config = config or ApmConfig()

        if self._config.enable and not self._config.app_name:
            raise ValueError(
                'APM agent enabled without application name. Set APMKIT_APP_NAME to identify the service.'
            )

        if context is None:
            context = TraceContext()
        elif isinstance(context, dict):
            context = TraceContext(**context)
        self._context = context

        self._logger = logger or configure_logger(self._config)
        self._sink = sink or create_sink(self._config, self._logger)

    @property
    def config(self) -> ApmConfig:
        return self._config

    @property
    def context(self) -> TraceContext:
        return self._context

    @property
    def sink(self) -> Sink:
        return self._sink

    def set_sink(self, sink: Sink) -> None:
        """Replace the sink used by sessions created from now on."""
        self._sink = sink

    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def app_version(self) -> str:
        return self._config.app_version

    @property
    def token(self) -> str:
        token = self._config.server.secret_token
        return token.get_secret_value() if token else ''

    @property
    def server_url(self) -> str:
        return self._config.server.url

    def new_session(self) -> TraceSession:
        """Create an idle session bound to this agent sink and configuration."""
        return TraceSession(
            sink=self._sink,
            config=self._config,
            context=self._context,
            logger=self._logger,
        )

    def shutdown(self) -> None:
        """Shut down the sink. Sessions created before stop delivering records."""
        self._sink.shutdown()
