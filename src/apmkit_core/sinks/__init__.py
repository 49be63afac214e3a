from apmkit_core.sinks.abstract_sink import Record as Record, Sink as Sink
from apmkit_core.sinks.memory_sink import MemorySink as MemorySink
from apmkit_core.sinks.otlp_sink import (
    LoggingSpanExporter as LoggingSpanExporter,
    OtlpSink as OtlpSink,
)
from apmkit_core.sinks.factory import create_sink as create_sink
