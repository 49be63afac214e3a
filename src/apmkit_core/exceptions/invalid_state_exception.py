from typing import Optional


class InvalidStateException(Exception):
    """Exception raised when an operation is attempted in a state that forbids it.

    This exception signals a programming error in the caller, e.g. starting a span
    without an open transaction, stopping a span that is not on top of the span
    stack or starting a second transaction in the same session.

    Attributes
    ----------
    message : str
        Explanation of the error
    operation : str
        Name of the rejected operation (e.g. 'start_span', 'stop_span')
    state : str
        The session state at the time of the call
    details : dict, optional
        Additional details, such as the identifiers involved

    Example
    ---------
    try:
        session.start_span('query', 'db')
    except InvalidStateException as e:
        print(e)  # Will print: "Cannot start_span while idle: No transaction is open"
    """

    def __init__(
        self,
        message: str,
        operation: str,
        state: str,
        details: Optional[dict] = None,
    ):
        """Initialize the invalid state error.

        Parameters
        ----------
        message : str
            Human-readable error message
        operation : str
            Name of the rejected operation
        state : str
            The session state when the operation was attempted
        details : dict, optional
            Additional error details, by default None
        """
        self.message = message
        self.operation = operation
        self.state = state
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        base_message = f'Cannot {self.operation} while {self.state}: {self.message}'
        if self.details:
            return f'{base_message}\nDetails: {self.details}'
        return base_message
