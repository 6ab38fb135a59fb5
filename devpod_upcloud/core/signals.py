"""Signal handling for interrupting long-running provider operations."""

from __future__ import annotations

import logging
import signal
import threading
import types

logger = logging.getLogger(__name__)


class CancellationManager:
    """Thread-safe owner of the process-wide cancellation event.

    Lifecycle clients wait on the event between state polls, so setting it
    from a signal handler makes an in-flight wait return promptly.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._event = threading.Event()
        self._signum: int | None = None

    @property
    def event(self) -> threading.Event:
        return self._event

    @property
    def signum(self) -> int | None:
        with self._lock:
            return self._signum

    def cancel(self, signum: int | None = None) -> None:
        """Set the cancellation event.

        Parameters
        ----------
        signum : int | None
            Signal that triggered the cancellation, if any
        """
        with self._lock:
            if self._signum is None:
                self._signum = signum
        self._event.set()

    def reset(self) -> None:
        with self._lock:
            self._signum = None
        self._event.clear()


_cancellation_manager = CancellationManager()


def setup_signal_handlers() -> None:
    """Route SIGINT and SIGTERM to the cancellation event.

    The first signal requests cancellation. A second signal restores the
    default handler behaviour so that the process can still be interrupted if
    an operation ignores the event.
    """

    def handler(signum: int, frame: types.FrameType | None) -> None:
        if _cancellation_manager.event.is_set():
            signal.signal(signum, signal.SIG_DFL)
            signal.raise_signal(signum)
            return

        logger.warning(
            "Received %s, cancelling operation...", signal.Signals(signum).name
        )
        _cancellation_manager.cancel(signum)

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)


def get_cancel_event() -> threading.Event:
    """Get the event set when the operation should be cancelled.

    Returns
    -------
    threading.Event
        Process-wide cancellation event
    """
    return _cancellation_manager.event


def request_cancellation(signum: int | None = None) -> None:
    _cancellation_manager.cancel(signum)


def reset_cancellation() -> None:
    _cancellation_manager.reset()
