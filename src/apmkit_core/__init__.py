from apmkit_core.agent import ApmAgent as ApmAgent
from apmkit_core.exceptions import (
    InvalidStateException as InvalidStateException,
    SinkFailureException as SinkFailureException,
)
from apmkit_core.facade import Apm as Apm
from apmkit_core.models import ApmConfig as ApmConfig
from apmkit_core.session import (
    SessionState as SessionState,
    TraceSession as TraceSession,
)
