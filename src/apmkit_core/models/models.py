import os
import secrets
import time
import traceback
from typing import Any, List, Optional

from pydantic import BaseModel, Field


def generate_id() -> str:
    """Generate a random 64 bit identifier as 16 hex characters."""
    return secrets.token_hex(8)


class StackFrame(BaseModel):
    abs_path: str
    filename: str
    function: str
    lineno: Optional[int] = None
    context_line: Optional[str] = None

    @classmethod
    def from_frame_summary(cls, frame: traceback.FrameSummary) -> 'StackFrame':
        return cls(
            abs_path=frame.filename,
            filename=os.path.basename(frame.filename),
            function=frame.name,
            lineno=frame.lineno,
            context_line=frame.line or None,
        )


class TraceContext(BaseModel):
    """User, custom and tag data attached to a transaction."""

    user: dict[str, Any] = Field(default_factory=dict)
    custom: dict[str, Any] = Field(default_factory=dict)
    tags: dict[str, str] = Field(default_factory=dict)


class TimedRecord(BaseModel):
    """A record with a start and stop boundary.

    Timestamps are Unix epoch nanoseconds and stay `None` until
    `start()` and `stop()` are called.
    """

    id: str = Field(default_factory=generate_id)
    name: str
    type: str
    trace_id: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None

    def start(self) -> None:
        self.start_time = time.time_ns()

    def stop(self) -> None:
        if self.start_time is None:
            self.start()
        self.end_time = time.time_ns()

    @property
    def is_started(self) -> bool:
        return self.start_time is not None

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time) / 1_000_000


class Transaction(TimedRecord):
    context: TraceContext = Field(default_factory=TraceContext)


class Span(TimedRecord):
    transaction_id: Optional[str] = None
    parent_id: Optional[str] = None
    stacktrace: List[StackFrame] = Field(default_factory=list)
    """Call stack captured when the span started, innermost frame first."""


class ErrorRecord(BaseModel):
    id: str = Field(default_factory=generate_id)
    transaction_id: str
    parent_id: str
    trace_id: Optional[str] = None
    transaction: Optional[Transaction] = Field(default=None, exclude=True)
    exception_type: str
    message: str
    culprit: Optional[str] = None
    stacktrace: List[StackFrame] = Field(default_factory=list)
    timestamp: int = Field(default_factory=time.time_ns)

    @classmethod
    def from_exception(
        cls,
        exception: BaseException,
        transaction: Transaction,
        max_depth: int = 10,
    ) -> 'ErrorRecord':
        """Build an error record for an exception raised within a transaction.

        Parameters
        ----------
        exception : BaseException
            The exception to report.
        transaction : Transaction
            The transaction the error belongs to. It is used as both context and parent.
        max_depth : int, optional
            Maximum number of traceback frames to keep. Default 10.

        Returns
        -------
        ErrorRecord
        """
        exception_class = type(exception)

        frames = traceback.extract_tb(exception.__traceback__)
        stacktrace = [
            StackFrame.from_frame_summary(frame) for frame in reversed(frames)
        ][:max_depth]

        culprit = None
        if stacktrace:
            module = os.path.splitext(stacktrace[0].filename)[0]
            culprit = f'{module}.{stacktrace[0].function}'

        return cls(
            transaction_id=transaction.id,
            parent_id=transaction.id,
            trace_id=transaction.trace_id,
            transaction=transaction,
            exception_type=f'{exception_class.__module__}.{exception_class.__qualname__}',
            message=str(exception),
            culprit=culprit,
            stacktrace=stacktrace,
        )
