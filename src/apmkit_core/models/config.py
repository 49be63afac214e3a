from typing import List, Literal, Optional

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

from pydantic import Field, SecretStr


class BaseConfig(BaseSettings):
    """Base class for configuration values."""

    pass


class ApmServerConfig(BaseConfig):
    """Configuration values for the APM server connection. All env variables must start with apmkit_server_"""

    url: str = 'http://localhost:4318/'
    """The base url of the APM server (an Open Telemetry collector endpoint)."""

    secret_token: Optional[SecretStr] = Field(exclude=True, default=None)
    """The secret token used to authenticate against the APM server."""

    traces_endpoint: str = Field(
        default_factory=lambda data: f'{data["url"].rstrip("/")}/v1/traces'
    )
    """The endpoint for the traces exporter. Default 'http://localhost:4318/v1/traces'."""

    timeout_seconds: int = 10
    """The client timeout when sending traces. Default 10 seconds."""

    use_compression: bool = True
    """The client should compress traces before send. Default True."""

    verbose: bool = False
    """Log every time traces are sent to the server. Default False."""

    authentication_header: str = 'Authorization'
    """The header in which the secret token is sent, as a Bearer token."""

    model_config = SettingsConfigDict(
        env_prefix='apmkit_server_',
        env_file='.env',
        extra='ignore',
    )


class ApmConfig(BaseConfig):
    """Configuration values for the APM agent. All env variables must start with apmkit_"""

    enable: bool = True
    """Enable sending transactions to the APM server. When False records are kept in memory. Default True."""

    app_name: str = 'app'
    """The name of the monitored application, reported as service name."""

    app_version: str = ''
    """The version of the monitored application."""

    environment: Optional[str] = None
    """The deployment environment (e.g. production, staging)."""

    agent_name: str = 'apmkit'
    """The agent name reported to the APM server."""

    agent_version: Optional[str] = None
    """The agent version reported to the APM server. Defaults to the installed package version."""

    framework_name: Optional[str] = None
    """Name of the framework hosting the agent, if any."""

    framework_version: Optional[str] = None
    """Version of the framework hosting the agent, if any."""

    max_stack_depth: int = Field(default=10, ge=1)
    """Maximum number of call stack frames captured for spans and errors. Default 10."""

    skip_exceptions: List[str] = []
    """Exception class names (simple or fully qualified) that are never reported as errors."""

    transport: Literal['otlp', 'memory'] = 'otlp'
    """The sink used to deliver records. Default 'otlp'."""

    logging_level: Optional[int] = logging.INFO
    """The logging level. Default "logging.INFO"."""

    logging_file: Optional[str] = None
    """The log file path. Specify to save logs to file. Default "None"."""

    theme: Optional[Literal['light', 'dark']] = None
    """The console theme to use for the command line. Default None (auto-detect)."""

    server: ApmServerConfig = Field(default_factory=ApmServerConfig)
    """APM server configuration"""

    model_config = SettingsConfigDict(
        env_prefix='apmkit_',
        env_file='.env',
        extra='ignore',
    )
