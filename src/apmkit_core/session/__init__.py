from apmkit_core.session.trace_session import (
    SessionState as SessionState,
    TraceSession as TraceSession,
)
from apmkit_core.session.stacktrace import capture_stacktrace as capture_stacktrace
