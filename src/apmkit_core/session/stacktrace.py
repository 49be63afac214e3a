import sys
import traceback
from typing import List

from apmkit_core.models import StackFrame


def capture_stacktrace(limit: int, skip: int = 0) -> List[StackFrame]:
    """Capture the current call stack, innermost frame first.

    Parameters
    ----------
    limit : int
        Maximum number of frames to capture.
    skip : int, optional
        Number of frames above the caller of this function to leave out, so
        that tracing helpers do not show up in the captured stack. Default 0.

    Returns
    -------
    list of StackFrame
        Up to `limit` frames, starting at the first frame not skipped.
    """
    if limit < 1:
        return []

    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        # the call stack is shallower than the requested offset
        return []

    summary = traceback.extract_stack(frame, limit=limit)
    return [StackFrame.from_frame_summary(f) for f in reversed(summary)]
