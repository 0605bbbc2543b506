"""Reading session recording and progress derivation."""

from .progress import (
    ProgressChange,
    ProgressUpdater,
    calculate_progress,
    calculate_reading_speed,
)
from .session import (
    SessionRecorder,
    get_session_recorder,
)

__all__ = [
    "ProgressChange",
    "ProgressUpdater",
    "calculate_progress",
    "calculate_reading_speed",
    "SessionRecorder",
    "get_session_recorder",
]
