from apmkit_core.exceptions.invalid_state_exception import (
    InvalidStateException as InvalidStateException,
)
from apmkit_core.exceptions.sink_failure_exception import (
    SinkFailureException as SinkFailureException,
)
