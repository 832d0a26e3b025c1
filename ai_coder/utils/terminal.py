"""Line input with the terminal state restored after every read."""

from __future__ import annotations

import readline  # noqa: F401 – side-effect: history & line editing
import sys
import termios
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

from .ansi import console


@contextmanager
def terminal_state(stream: Optional[TextIO] = None) -> Iterator[None]:
    """Snapshot the tty attributes of *stream* and put them back afterwards.

    Restoring happens on every exit path, including end-of-input and
    interrupts.  Non-tty streams (pipes, tests) pass straight through.
    """
    stream = stream or sys.stdin
    if not stream.isatty():
        yield
        return

    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


def read_line(prompt: str) -> str:
    """Read one line; raises EOFError at end of input."""
    with terminal_state():
        return console.input(prompt)
