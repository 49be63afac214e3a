# Use an explicit re-export https://github.com/astral-sh/ruff/issues/5697#issuecomment-1631647211

from apmkit_core.models.models import (
    StackFrame as StackFrame,
    TraceContext as TraceContext,
    TimedRecord as TimedRecord,
    Transaction as Transaction,
    Span as Span,
    ErrorRecord as ErrorRecord,
    generate_id as generate_id,
)

from apmkit_core.models.config import (
    ApmConfig as ApmConfig,
    ApmServerConfig as ApmServerConfig,
)
