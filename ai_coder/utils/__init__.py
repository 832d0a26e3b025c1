from .ansi import (
    Ansi,
    USER_LABEL,
    ASSISTANT_LABEL,
    ERROR_LABEL,
    WARNING_LABEL,
    REASONING_LABEL,
    TOOL_LABEL,
    console,
)
from .log import configure_logging
from .render import TerminalRenderer
from .spinner import Spinner
from .terminal import read_line, terminal_state

__all__ = [
    "Ansi",
    "USER_LABEL",
    "ASSISTANT_LABEL",
    "ERROR_LABEL",
    "WARNING_LABEL",
    "REASONING_LABEL",
    "TOOL_LABEL",
    "console",
    "configure_logging",
    "TerminalRenderer",
    "Spinner",
    "read_line",
    "terminal_state",
]
