import logging

import pytest
from pydantic import SecretStr, ValidationError

from apmkit_core.models.config import ApmConfig, ApmServerConfig


class TestConfig:
    def test_secret_token_hidden_when_dumping_config(self):
        config = ApmServerConfig(secret_token='test')
        json_output = config.model_dump_json()
        dictionary_output = config.model_dump()

        assert '**********' == str(config.secret_token)
        assert isinstance(config.secret_token, SecretStr)
        assert '"secret_token"' not in json_output
        assert 'secret_token' not in dictionary_output

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv('APMKIT_MAX_STACK_DEPTH', raising=False)

        config = ApmConfig(_env_file=None)

        assert config.enable is True
        assert config.max_stack_depth == 10
        assert config.skip_exceptions == []
        assert config.transport == 'otlp'
        assert config.logging_level == logging.INFO

    def test_traces_endpoint_derived_from_url(self):
        config = ApmServerConfig(url='https://apm.example.com/')

        assert config.traces_endpoint == 'https://apm.example.com/v1/traces'

    def test_explicit_traces_endpoint(self):
        config = ApmServerConfig(
            url='https://apm.example.com', traces_endpoint='https://other/traces'
        )

        assert config.traces_endpoint == 'https://other/traces'

    def test_loaded_from_environment(self, monkeypatch):
        monkeypatch.setenv('APMKIT_APP_NAME', 'shop')
        monkeypatch.setenv('APMKIT_MAX_STACK_DEPTH', '5')
        monkeypatch.setenv('APMKIT_SKIP_EXCEPTIONS', '["KeyError"]')

        config = ApmConfig()

        assert config.app_name == 'shop'
        assert config.max_stack_depth == 5
        assert config.skip_exceptions == ['KeyError']

    def test_server_loaded_from_environment(self, monkeypatch):
        monkeypatch.setenv('APMKIT_SERVER_URL', 'https://apm.example.com')
        monkeypatch.setenv('APMKIT_SERVER_SECRET_TOKEN', 'token')

        config = ApmServerConfig()

        assert config.url == 'https://apm.example.com'
        assert config.secret_token.get_secret_value() == 'token'

    def test_secret_token_kept_in_explicit_server_config(self):
        config = ApmConfig(
            server=ApmServerConfig(
                url='https://apm.example.com', secret_token=SecretStr('secret')
            )
        )

        assert config.server.url == 'https://apm.example.com'
        assert config.server.secret_token.get_secret_value() == 'secret'
        assert 'secret_token' not in config.model_dump()['server']

    def test_server_token_loaded_from_environment_in_agent_config(self, monkeypatch):
        monkeypatch.setenv('APMKIT_SERVER_SECRET_TOKEN', 'token')

        assert ApmConfig().server.secret_token.get_secret_value() == 'token'
        assert (
            ApmConfig(server=ApmServerConfig()).server.secret_token.get_secret_value()
            == 'token'
        )

    def test_stack_depth_must_be_positive(self):
        with pytest.raises(ValidationError):
            ApmConfig(max_stack_depth=0)

    def test_unknown_transport_rejected(self):
        with pytest.raises(ValidationError):
            ApmConfig(transport='carrier-pigeon')
