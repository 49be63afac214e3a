import logging

from apmkit_core.logging import (
    configure_logger,
    create_isolated_logger,
    create_null_logger,
)
from apmkit_core.models import ApmConfig


class TestLogger:
    def test_isolated_logger_does_not_propagate(self):
        logger = create_isolated_logger('apmkit.test.isolated', level=logging.DEBUG)

        assert logger.propagate is False
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_configuring_twice_does_not_duplicate_handlers(self):
        create_isolated_logger('apmkit.test.twice')
        logger = create_isolated_logger('apmkit.test.twice')

        assert len(logger.handlers) == 1

    def test_null_logger_has_only_null_handler(self):
        logger = create_null_logger('apmkit.test.null')

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.NullHandler)

    def test_configure_logger_from_config(self):
        logger = configure_logger(
            ApmConfig(logging_level=logging.WARNING), name='apmkit.test.config'
        )

        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_configure_logger_with_file(self, tmp_path):
        log_file = tmp_path / 'apm.log'

        logger = configure_logger(
            ApmConfig(logging_file=str(log_file)), name='apmkit.test.file'
        )
        logger.warning('Flush failed')
        for handler in logger.handlers:
            handler.flush()

        assert isinstance(logger.handlers[0], logging.FileHandler)
        assert 'Flush failed' in log_file.read_text()

        for handler in logger.handlers:
            handler.close()
