from unittest.mock import patch

from apmkit_core.models import ApmConfig
from apmkit_core.sinks import MemorySink, OtlpSink, create_sink


class TestCreateSink:
    def test_memory_transport(self):
        sink = create_sink(ApmConfig(transport='memory'))

        assert isinstance(sink, MemorySink)

    def test_disabled_agent_uses_memory(self):
        sink = create_sink(ApmConfig(enable=False, transport='otlp'))

        assert isinstance(sink, MemorySink)

    @patch('apmkit_core.sinks.otlp_sink.OTLPSpanExporter')
    def test_otlp_transport(self, mock_exporter):
        sink = create_sink(ApmConfig(transport='otlp'))

        assert isinstance(sink, OtlpSink)
        mock_exporter.assert_called_once()
