"""Transaction and span tracking for a single unit of work."""

from contextlib import contextmanager
from enum import Enum
from logging import Logger
from typing import Iterator, List, Optional, Union

from apmkit_core.exceptions import InvalidStateException, SinkFailureException
from apmkit_core.logging import create_null_logger
from apmkit_core.models import (
    ApmConfig,
    ErrorRecord,
    Span,
    TraceContext,
    Transaction,
)
from apmkit_core.session.stacktrace import capture_stacktrace
from apmkit_core.sinks import Record, Sink


class SessionState(str, Enum):
    IDLE = 'idle'
    TRANSACTION_OPEN = 'transaction_open'
    CLOSED = 'closed'


class TraceSession:
    """Track one transaction, its open spans and its errors.

    A session corresponds to exactly one unit of work, e.g. one inbound request.
    It moves from `IDLE` to `TRANSACTION_OPEN` when the transaction starts and to
    `CLOSED` when it stops; a closed session cannot be reused.

    Spans are kept on a stack so that each new span is linked to the span opened
    right before it, or to the transaction when the stack is empty. Spans must be
    stopped in LIFO order.

    Sessions are not thread-safe. Do not share one across threads without
    external synchronization.

    Example
    -------
    >>> session = TraceSession(sink=MemorySink())
    >>> session.start_transaction('GET /orders', 'request')
    >>> span = session.start_span('SELECT orders', 'db.query')
    >>> session.stop_span(span)
    >>> session.stop_transaction()
    True
    """

    def __init__(
        self,
        sink: Sink,
        config: Optional[ApmConfig] = None,
        context: Union[TraceContext, dict, None] = None,
        logger: Optional[Logger] = None,
    ):
        """Create an idle session.

        Parameters
        ----------
        sink : Sink
            Destination of completed transactions, spans and errors.
        config : ApmConfig, optional
            Agent configuration. Provides the stack depth and the skipped exceptions.
        context : TraceContext | dict, optional
            Default user, custom and tags data copied into the transaction.
        logger : Logger, optional
            Logger for state transitions. A null logger is used if not provided.
        """
        self._sink = sink
        self._config = config or ApmConfig()

        if context is None:
            context = TraceContext()
        elif isinstance(context, dict):
            context = TraceContext(**context)
        self._context = context

        if logger is None:
            logger = create_null_logger(name=f'apmkit.{self.__class__.__name__}')
        self._logger = logger

        self._state = SessionState.IDLE
        self._transaction: Optional[Transaction] = None
        self._pending_transaction_id = ''
        self._spans: List[Span] = []
        self._recorded_exceptions: List[BaseException] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def sink(self) -> Sink:
        return self._sink

    @property
    def max_stack_depth(self) -> int:
        return self._config.max_stack_depth

    def _invalid_state(
        self, operation: str, message: str, **details
    ) -> InvalidStateException:
        return InvalidStateException(
            message,
            operation=operation,
            state=self._state.value,
            details=details or None,
        )

    def _require_open(self, operation: str) -> Transaction:
        if self._state is not SessionState.TRANSACTION_OPEN:
            raise self._invalid_state(operation, 'No transaction is open')
        return self._transaction

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def start_transaction(
        self,
        name: str,
        type: str,
        distributed_trace_id: Optional[str] = None,
    ) -> Transaction:
        """Start the transaction of this session.

        Parameters
        ----------
        name : str
            Transaction name, e.g. the route of a request.
        type : str
            Transaction type, e.g. 'request' or 'job'.
        distributed_trace_id : str, optional
            Trace id received from an upstream service. When empty the
            transaction starts a new trace with its own identifier.

        Returns
        -------
        Transaction
            The started transaction. The session keeps tracking it.

        Throws
        -------
        InvalidStateException
            If a transaction is already open or the session is closed
        """
        if self._state is not SessionState.IDLE:
            raise self._invalid_state(
                'start_transaction',
                f'Transaction [{self._transaction.id}] was already started',
                transaction=name,
            )

        transaction = Transaction(
            name=name,
            type=type,
            context=self._context.model_copy(deep=True),
        )

        if self._pending_transaction_id:
            transaction.id = self._pending_transaction_id

        transaction.trace_id = distributed_trace_id or transaction.id
        transaction.start()

        self._transaction = transaction
        self._state = SessionState.TRANSACTION_OPEN

        self._logger.debug(
            f'Transaction [{transaction.id}] {name} started in trace [{transaction.trace_id}]'
        )

        return transaction

    def set_transaction_id(self, transaction_id: str) -> None:
        """Assign the transaction identifier.

        Before the transaction starts the identifier is kept and applied when it
        starts. Once started the transaction, and the open spans linked to it,
        are updated immediately.

        Throws
        -------
        InvalidStateException
            If the session is closed, or the transaction is open and the id is empty
        """
        if self._state is SessionState.IDLE:
            self._pending_transaction_id = transaction_id
            return

        if self._state is SessionState.CLOSED:
            raise self._invalid_state(
                'set_transaction_id',
                f'Transaction [{self._transaction.id}] was already sent',
            )

        if not transaction_id:
            raise self._invalid_state(
                'set_transaction_id', 'Transaction id cannot be empty'
            )

        previous_id = self._transaction.id
        self._transaction.id = transaction_id

        for span in self._spans:
            if span.transaction_id == previous_id:
                span.transaction_id = transaction_id
            if span.parent_id == previous_id:
                span.parent_id = transaction_id

    def get_transaction_id(self) -> str:
        """Return the transaction id, the id waiting for the transaction to start or an empty string."""
        if self._transaction is not None:
            return self._transaction.id

        return self._pending_transaction_id

    def get_current_transaction(self) -> Optional[Transaction]:
        """Return the open transaction, if any."""
        if self._state is SessionState.TRANSACTION_OPEN:
            return self._transaction
        return None

    def stop_transaction(self) -> bool:
        """Stop the transaction and deliver everything to the sink.

        Spans still open are stopped first, most recent first, so no span is
        emitted after its transaction. The session is closed afterwards, even
        when delivery fails.

        Returns
        -------
        bool
            The flush outcome. True when there is no transaction to stop.
        """
        if self._state is not SessionState.TRANSACTION_OPEN:
            self._logger.debug(
                f'No transaction to stop, session is {self._state.value}'
            )
            return True

        transaction = self._transaction

        try:
            while self._spans:
                self._finish_span(self._spans.pop())

            transaction.stop()
            self._sink.register(transaction)

            flushed = self._sink.flush()
        except SinkFailureException as ex:
            self._logger.warning(
                f'Transaction [{transaction.id}] could not be delivered: {str(ex)}'
            )
            flushed = False
        finally:
            self._spans = []
            self._recorded_exceptions = []
            self._state = SessionState.CLOSED

        if not flushed:
            self._logger.warning(
                f'Flush of transaction [{transaction.id}] to {self._sink.__class__.__name__} failed'
            )
        else:
            self._logger.debug(
                f'Transaction [{transaction.id}] stopped after {transaction.duration_ms:.3f} ms'
            )

        return flushed

    @contextmanager
    def transaction(
        self,
        name: str,
        type: str,
        distributed_trace_id: Optional[str] = None,
    ) -> Iterator[Transaction]:
        """Run a block of code as the transaction of this session.

        Exceptions escaping the block are recorded as errors and re-raised.
        The transaction is always stopped.

        Example
        -------
        >>> with session.transaction('import-products', 'job') as transaction:
        ...     run_import()
        """
        transaction = self.start_transaction(name, type, distributed_trace_id)
        try:
            yield transaction
        except Exception as exc:
            self._record_propagating(exc)
            raise
        finally:
            self.stop_transaction()

    # -------------------------------------------------------------------------
    # Spans
    # -------------------------------------------------------------------------

    def start_span(self, name: str, type: str) -> Span:
        """Start a span as child of the innermost open span, or of the transaction.

        The call stack of the caller is captured on the span.

        Throws
        -------
        InvalidStateException
            If no transaction is open
        """
        return self._open_span(name, type, stack_offset=2)

    def _open_span(self, name: str, type: str, stack_offset: int) -> Span:
        transaction = self._require_open('start_span')

        span = Span(
            name=name,
            type=type,
            transaction_id=transaction.id,
            trace_id=transaction.trace_id,
            parent_id=self._spans[-1].id if self._spans else transaction.id,
            stacktrace=capture_stacktrace(
                self._config.max_stack_depth, skip=stack_offset
            ),
        )
        span.start()

        self._spans.append(span)

        return span

    def add_span(self, span: Span) -> Span:
        """Push a span created elsewhere onto the span stack.

        Spans without linkage are attached to the current transaction and the
        innermost open span. Spans not yet started are started.

        Throws
        -------
        InvalidStateException
            If no transaction is open or the span is already on the stack
        """
        transaction = self._require_open('add_span')

        if any(open_span is span for open_span in self._spans):
            raise self._invalid_state(
                'add_span', f'Span [{span.id}] is already open', span=span.id
            )

        if span.transaction_id is None:
            span.transaction_id = transaction.id
        if span.trace_id is None:
            span.trace_id = transaction.trace_id
        if span.parent_id is None:
            span.parent_id = self._spans[-1].id if self._spans else transaction.id
        if not span.is_started:
            span.start()

        self._spans.append(span)

        return span

    def stop_span(self, span: Span) -> None:
        """Stop the innermost open span and hand it to the sink.

        Throws
        -------
        InvalidStateException
            If `span` is not the innermost open span. The span stack is left unchanged.
        """
        if not self._spans or self._spans[-1] is not span:
            raise self._invalid_state(
                'stop_span',
                f'Span [{span.id}] is not the innermost open span',
                span=span.id,
                innermost=self._spans[-1].id if self._spans else None,
            )

        self._finish_span(self._spans.pop())

    def _finish_span(self, span: Span) -> None:
        span.stop()
        self._emit(span)

    def get_spans(self) -> List[Span]:
        """Return the open spans, innermost last."""
        return list(self._spans)

    @contextmanager
    def span(self, name: str, type: str) -> Iterator[Span]:
        """Run a block of code inside a span.

        Exceptions escaping the block are recorded as errors, once per session
        however many blocks they cross, and re-raised. When the block exits with
        an exception, spans it left open are stopped together with this one.

        Example
        -------
        >>> with session.span('SELECT orders', 'db.query') as span:
        ...     rows = fetch_orders()
        """
        span = self._open_span(name, type, stack_offset=3)
        try:
            yield span
        except BaseException as exc:
            if isinstance(exc, Exception):
                self._record_propagating(exc)
            self._unwind_to(span)
            raise

        self.stop_span(span)

    def _unwind_to(self, span: Span) -> None:
        if not any(open_span is span for open_span in self._spans):
            return

        while self._spans:
            open_span = self._spans.pop()
            try:
                self._finish_span(open_span)
            except SinkFailureException as ex:
                self._logger.warning(
                    f'Span [{open_span.id}] could not be delivered: {str(ex)}'
                )
            if open_span is span:
                break

    # -------------------------------------------------------------------------
    # Errors
    # -------------------------------------------------------------------------

    def record_error(self, exception: BaseException) -> Optional[ErrorRecord]:
        """Report an exception raised while the transaction is open.

        The error is handed to the sink immediately.

        Returns
        -------
        ErrorRecord | None
            The reported error, or None when the exception class is configured to be skipped.

        Throws
        -------
        InvalidStateException
            If no transaction is open
        """
        transaction = self._require_open('record_error')

        if self._is_skipped(exception):
            self._logger.debug(
                f'Skipping {exception.__class__.__name__} as configured in skip_exceptions'
            )
            return None

        error = ErrorRecord.from_exception(
            exception, transaction, max_depth=self._config.max_stack_depth
        )
        self._emit(error)

        return error

    def _record_propagating(self, exception: Exception) -> None:
        if self._state is not SessionState.TRANSACTION_OPEN:
            return
        if any(recorded is exception for recorded in self._recorded_exceptions):
            return

        self._recorded_exceptions.append(exception)
        try:
            self.record_error(exception)
        except SinkFailureException as ex:
            self._logger.warning(
                f'{exception.__class__.__name__} could not be reported: {str(ex)}'
            )

    def _is_skipped(self, exception: BaseException) -> bool:
        skipped = set(self._config.skip_exceptions)
        if not skipped:
            return False

        for cls in type(exception).__mro__:
            if cls.__name__ in skipped or f'{cls.__module__}.{cls.__qualname__}' in skipped:
                return True
        return False

    def _emit(self, record: Record) -> None:
        self._sink.register(record)
