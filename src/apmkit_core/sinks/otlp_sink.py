"""
OpenTelemetry sink.

Converts transactions, spans and errors into OpenTelemetry spans and delivers
them to an OTLP/HTTP collector (e.g. an Elastic APM server or an Open Telemetry
collector) using the official exporter.

Usage:
    from apmkit_core.sinks import OtlpSink

    sink = OtlpSink(config=ApmConfig())
    session = TraceSession(sink=sink)
"""

from __future__ import annotations

import hashlib
import json
import logging
from importlib.metadata import PackageNotFoundError, version as metadata_version
from typing import Any, Optional, Sequence

from opentelemetry.exporter.otlp.proto.http import Compression
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import Event, ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from opentelemetry.sdk.util.instrumentation import InstrumentationScope
from opentelemetry.trace import SpanContext, SpanKind, Status, StatusCode, TraceFlags

from apmkit_core.exceptions import SinkFailureException
from apmkit_core.models import ApmConfig, ErrorRecord, Span, StackFrame, Transaction
from apmkit_core.sinks.abstract_sink import Record, Sink

TRACE_ID_BYTES = 16
SPAN_ID_BYTES = 8


class LoggingSpanExporter(SpanExporter):
    """A span exporter that wraps another exporter and logs when spans are sent."""

    def __init__(
        self,
        wrapped_exporter: SpanExporter,
        endpoint: str,
        logger: logging.Logger | None = None,
    ):
        self._wrapped_exporter = wrapped_exporter
        self._endpoint = endpoint
        self._logger = logger or logging.getLogger('apmkit')

    def export(self, spans) -> SpanExportResult:
        if spans:
            span_count = len(spans)
            self._logger.debug(
                f'Sending {span_count} record{"s" if span_count > 1 else ""} to {self._endpoint}'
            )
        return self._wrapped_exporter.export(spans)

    def shutdown(self):
        return self._wrapped_exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self._wrapped_exporter.force_flush(timeout_millis)


def agent_version(config: ApmConfig) -> str:
    """Return the configured agent version or the installed package version."""
    if config.agent_version:
        return config.agent_version
    try:
        return metadata_version('apmkit')
    except PackageNotFoundError:
        return 'Development version'


def to_otel_id(value: str, size: int) -> int:
    """Map an identifier onto an OpenTelemetry id of `size` bytes.

    Hex identifiers that fit are used as they are, so ids propagated from
    other services keep their value. Anything else is hashed.
    """
    try:
        number = int(value, 16)
    except ValueError:
        number = 0

    if 0 < number < (1 << (size * 8)):
        return number

    digest = hashlib.blake2b(value.encode('utf-8'), digest_size=size).digest()
    return int.from_bytes(digest, 'big')


def _serialize_value(value: Any, max_length: int = 10000) -> str:
    """Serialize a value for span attributes with size limits."""
    try:
        if hasattr(value, 'model_dump_json'):
            result = value.model_dump_json()
        else:
            result = json.dumps(value, default=str)

        if len(result) > max_length:
            return result[:max_length] + '...[truncated]'
        return result
    except (TypeError, ValueError):
        return str(value)[:max_length]


def _attribute(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)):
        return value
    return _serialize_value(value)


def _format_stacktrace(frames: Sequence[StackFrame]) -> str:
    return '\n'.join(
        f'{frame.abs_path}:{frame.lineno} in {frame.function}' for frame in frames
    )


class OtlpSink(Sink):
    """Deliver records to an OTLP/HTTP endpoint.

    Records are converted when registered and buffered until `flush`. A failed
    flush keeps the buffer so that the next flush delivers it again.

    Attributes
    ----------
    _config : ApmConfig
        The agent configuration, used for the resource attributes and the exporter.
    _exporter : SpanExporter
        The exporter that performs the delivery.
    _buffer : list of ReadableSpan
        Converted records waiting for delivery.
    """

    def __init__(
        self,
        config: Optional[ApmConfig] = None,
        exporter: Optional[SpanExporter] = None,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(logger=logger)

        self._config = config or ApmConfig()
        self._exporter = exporter or self._create_exporter()
        self._buffer: list[ReadableSpan] = []
        self._closed = False

        self._resource = Resource.create(
            {
                key: value
                for key, value in {
                    'service.name': self._config.app_name,
                    'service.version': self._config.app_version or None,
                    'deployment.environment': self._config.environment,
                    'apm.agent.name': self._config.agent_name,
                    'apm.agent.version': agent_version(self._config),
                    'apm.framework.name': self._config.framework_name,
                    'apm.framework.version': self._config.framework_version,
                }.items()
                if value is not None
            }
        )
        self._scope = InstrumentationScope(
            self._config.agent_name, agent_version(self._config)
        )

    def _create_exporter(self) -> SpanExporter:
        server = self._config.server

        headers = {}
        if server.secret_token:
            headers = {
                server.authentication_header: f'Bearer {server.secret_token.get_secret_value()}'
            }

        otlp_exporter = OTLPSpanExporter(
            endpoint=server.traces_endpoint,
            headers=headers,
            timeout=server.timeout_seconds,
            compression=Compression.Gzip
            if server.use_compression
            else Compression.NoCompression,
        )

        if server.verbose:
            return LoggingSpanExporter(otlp_exporter, server.url, self._logger)

        return otlp_exporter

    @property
    def pending(self) -> list[ReadableSpan]:
        """The converted records waiting for delivery."""
        return list(self._buffer)

    def register(self, record: Record) -> None:
        if self._closed:
            raise SinkFailureException(
                'Sink has been shut down',
                self.__class__.__name__,
                {'record_id': record.id},
            )

        if isinstance(record, Transaction):
            converted = self._convert_transaction(record)
        elif isinstance(record, Span):
            converted = self._convert_span(record)
        elif isinstance(record, ErrorRecord):
            converted = self._convert_error(record)
        else:
            raise TypeError(
                f'Unsupported record type [{record.__class__.__name__}].'
            )

        self._buffer.append(converted)

    def flush(self) -> bool:
        if not self._buffer:
            return True

        batch = list(self._buffer)

        try:
            result = self._exporter.export(batch)
        except Exception as ex:
            self._logger.error(
                f'Error while exporting {len(batch)} records to {self._config.server.traces_endpoint}: {str(ex)}',
                exc_info=True,
            )
            return False

        if result is not SpanExportResult.SUCCESS:
            self._logger.warning(
                f'Export of {len(batch)} records to {self._config.server.traces_endpoint} failed'
            )
            return False

        del self._buffer[: len(batch)]
        return True

    def shutdown(self) -> None:
        self._closed = True
        self._exporter.shutdown()

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def _context(self, trace_id: Optional[str], record_id: str) -> SpanContext:
        return SpanContext(
            trace_id=to_otel_id(trace_id or record_id, TRACE_ID_BYTES),
            span_id=to_otel_id(record_id, SPAN_ID_BYTES),
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )

    def _readable_span(self, **kwargs) -> ReadableSpan:
        return ReadableSpan(
            resource=self._resource,
            instrumentation_scope=self._scope,
            **kwargs,
        )

    def _convert_transaction(self, transaction: Transaction) -> ReadableSpan:
        attributes: dict[str, Any] = {
            'apm.transaction.id': transaction.id,
            'apm.transaction.type': transaction.type,
            'apm.trace.id': transaction.trace_id or transaction.id,
        }
        for key, value in transaction.context.tags.items():
            attributes[f'apm.tag.{key}'] = _attribute(value)
        for key, value in transaction.context.user.items():
            attributes[f'enduser.{key}'] = _attribute(value)
        for key, value in transaction.context.custom.items():
            attributes[f'apm.custom.{key}'] = _attribute(value)

        return self._readable_span(
            name=transaction.name,
            context=self._context(transaction.trace_id, transaction.id),
            parent=None,
            attributes=attributes,
            kind=SpanKind.SERVER,
            start_time=transaction.start_time,
            end_time=transaction.end_time,
        )

    def _convert_span(self, span: Span) -> ReadableSpan:
        attributes: dict[str, Any] = {
            'apm.span.id': span.id,
            'apm.span.type': span.type,
            'apm.parent.id': span.parent_id or '',
            'apm.transaction.id': span.transaction_id or '',
        }
        if span.stacktrace:
            caller = span.stacktrace[0]
            attributes['code.function'] = caller.function
            attributes['code.filepath'] = caller.abs_path
            if caller.lineno is not None:
                attributes['code.lineno'] = caller.lineno
            attributes['code.stacktrace'] = _format_stacktrace(span.stacktrace)

        parent = None
        if span.parent_id:
            parent = self._context(span.trace_id, span.parent_id)

        return self._readable_span(
            name=span.name,
            context=self._context(span.trace_id, span.id),
            parent=parent,
            attributes=attributes,
            kind=SpanKind.INTERNAL,
            start_time=span.start_time,
            end_time=span.end_time,
        )

    def _convert_error(self, error: ErrorRecord) -> ReadableSpan:
        exception_attributes = {
            'exception.type': error.exception_type,
            'exception.message': error.message,
            'exception.stacktrace': _format_stacktrace(error.stacktrace),
        }

        attributes: dict[str, Any] = {
            'apm.error.id': error.id,
            'apm.parent.id': error.parent_id,
            'apm.transaction.id': error.transaction_id,
            'exception.type': error.exception_type,
            'exception.message': error.message,
        }
        if error.culprit:
            attributes['apm.error.culprit'] = error.culprit

        return self._readable_span(
            name=error.exception_type,
            context=self._context(error.trace_id, error.id),
            parent=self._context(error.trace_id, error.parent_id),
            attributes=attributes,
            events=[
                Event(
                    'exception',
                    attributes=exception_attributes,
                    timestamp=error.timestamp,
                )
            ],
            kind=SpanKind.INTERNAL,
            status=Status(StatusCode.ERROR, error.message),
            start_time=error.timestamp,
            end_time=error.timestamp,
        )
