"""Cooperative cancellation of the stream-reading loop."""

from __future__ import annotations

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancellationToken:
    """Flag set once by a signal handler (or a test) and polled by readers."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@contextmanager
def cancel_on_signals(token: Optional[CancellationToken] = None) -> Iterator[CancellationToken]:
    """Route SIGINT/SIGTERM to *token* for the duration of the block.

    Signal handlers can only be installed from the main thread; elsewhere
    the token is yielded untouched and only explicit ``cancel()`` calls
    stop the reader.
    """
    token = token or CancellationToken()
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def _handler(signum, _frame):
        logger.debug("Received signal %s, cancelling stream", signum)
        token.cancel()

    previous = {sig: signal.signal(sig, _handler) for sig in CANCEL_SIGNALS}
    try:
        yield token
    finally:
        for sig, handler in previous.items():
            # None means the handler was not installed from Python
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
