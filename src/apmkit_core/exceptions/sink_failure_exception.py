from typing import Optional


class SinkFailureException(Exception):
    """Exception raised when a sink rejects a record or cannot deliver its buffer.

    Attributes
    ----------
    message : str
        Explanation of the failure
    sink : str
        Name of the sink that failed (e.g. 'OtlpSink', 'MemorySink')
    details : dict, optional
        Additional details about the failure, such as the endpoint or record id

    Example
    ---------
    try:
        sink.register(span)
    except SinkFailureException as e:
        print(e)  # Will print: "Sink MemorySink failed: Sink has been shut down"
    """

    def __init__(
        self,
        message: str,
        sink: str,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.sink = sink
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        base_message = f'Sink {self.sink} failed: {self.message}'
        if self.details:
            return f'{base_message}\nDetails: {self.details}'
        return base_message
