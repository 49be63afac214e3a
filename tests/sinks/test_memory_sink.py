import pytest

from apmkit_core.exceptions import SinkFailureException
from apmkit_core.models import ErrorRecord, Span, Transaction
from apmkit_core.sinks import MemorySink


@pytest.fixture
def transaction():
    return Transaction(name='checkout', type='request')


class TestMemorySink:
    def test_register_keeps_order(self, transaction):
        sink = MemorySink()
        span = Span(name='query', type='db')
        error = ErrorRecord.from_exception(RuntimeError('boom'), transaction)

        sink.register(span)
        sink.register(error)
        sink.register(transaction)

        assert sink.records == [span, error, transaction]
        assert sink.pending == [span, error, transaction]
        assert sink.spans == [span]
        assert sink.errors == [error]
        assert sink.transactions == [transaction]

    def test_flush_moves_pending_to_delivered(self, transaction):
        sink = MemorySink()
        sink.register(transaction)

        assert sink.flush() is True

        assert sink.pending == []
        assert sink.delivered == [transaction]
        assert sink.records == [transaction]
        assert sink.flush_count == 1

    def test_flush_with_nothing_pending(self):
        sink = MemorySink()

        assert sink.flush() is True
        assert sink.flush_count == 1

    def test_register_after_shutdown_fails(self, transaction):
        sink = MemorySink()
        sink.shutdown()

        with pytest.raises(SinkFailureException) as excinfo:
            sink.register(transaction)

        assert excinfo.value.sink == 'MemorySink'
        assert excinfo.value.details == {'record_id': transaction.id}
        assert sink.records == []
