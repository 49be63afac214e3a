from abc import ABC, abstractmethod
from logging import Logger
from typing import Optional, Union

from apmkit_core.logging import create_null_logger
from apmkit_core.models import ErrorRecord, Span, Transaction

Record = Union[Transaction, Span, ErrorRecord]


class Sink(ABC):
    """Define a destination for completed transactions, spans and errors.

    This class is intended to be abstract to serve as the starting point for implementing your own delivery mechanism.

    Note to implementers:
    - `register` must not block indefinitely and must not raise for well-formed records.
    - `flush` attempts to deliver everything registered so far and reports the outcome.
      A failed flush must leave the registered records untouched.

    Attributes
    ----------
    _logger : Logger
        The logger instance.
    """

    _logger: Logger

    def __init__(self, logger: Optional[Logger] = None):
        if logger is None:
            logger = create_null_logger(name=f'apmkit.{self.__class__.__name__}')

        self._logger = logger

    @abstractmethod
    def register(self, record: Record) -> None:
        """Queue a completed record for delivery.

        Parameters
        ----------
        record : Transaction | Span | ErrorRecord
            The completed record.

        Throws
        -------
        SinkFailureException
            If the sink cannot accept records anymore
        """
        pass

    @abstractmethod
    def flush(self) -> bool:
        """Deliver all registered records.

        Returns
        -------
        bool
            True when delivery succeeded, False otherwise.
        """
        pass

    def shutdown(self) -> None:
        """Release the resources held by the sink."""
        return None
