"""Terminal-side bridge components."""

from .input_queue import InputCaptureQueue
from .models import CursorPosition, MetricPayload, TerminalMetric, TerminalSize
from .router import TerminalRouter
from .widget import StreamTerminal, TerminalWidget

__all__ = [
    "CursorPosition",
    "InputCaptureQueue",
    "MetricPayload",
    "StreamTerminal",
    "TerminalMetric",
    "TerminalRouter",
    "TerminalSize",
    "TerminalWidget",
]
