from logging import Logger
from typing import List, Optional

from apmkit_core.exceptions import SinkFailureException
from apmkit_core.models import ErrorRecord, Span, Transaction
from apmkit_core.sinks.abstract_sink import Record, Sink


class MemorySink(Sink):
    """Keep every record in memory.

    Used in tests, for diagnostics and when the agent is disabled.

    Attributes
    ----------
    records : list
        Every registered record, in registration order.
    pending : list
        Records registered since the last flush.
    delivered : list
        Records moved out of `pending` by `flush`.
    flush_count : int
        Number of times `flush` was called.
    """

    def __init__(self, logger: Optional[Logger] = None):
        super().__init__(logger=logger)
        self.records: List[Record] = []
        self.pending: List[Record] = []
        self.delivered: List[Record] = []
        self.flush_count = 0
        self._closed = False

    def register(self, record: Record) -> None:
        if self._closed:
            raise SinkFailureException(
                'Sink has been shut down',
                self.__class__.__name__,
                {'record_id': record.id},
            )

        self.records.append(record)
        self.pending.append(record)

    def flush(self) -> bool:
        self.flush_count += 1
        self._logger.debug(f'Flushing {len(self.pending)} records')
        self.delivered.extend(self.pending)
        self.pending = []
        return True

    def shutdown(self) -> None:
        self._closed = True

    @property
    def transactions(self) -> List[Transaction]:
        return [r for r in self.records if isinstance(r, Transaction)]

    @property
    def spans(self) -> List[Span]:
        return [r for r in self.records if isinstance(r, Span)]

    @property
    def errors(self) -> List[ErrorRecord]:
        return [r for r in self.records if isinstance(r, ErrorRecord)]
