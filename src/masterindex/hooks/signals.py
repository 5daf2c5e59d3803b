"""Cleanup on termination signals.

A hook that is interrupted must not leave a handoff record behind and must
not report failure to git, so every handler runs the cleanup callback and
exits with status 0.
"""

import atexit
import logging
import signal
import sys
from types import FrameType
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

EXIT_STATUS = 0


def termination_signals() -> list[signal.Signals]:
    """Signals that end a hook process on this platform."""
    names = ("SIGINT", "SIGTERM", "SIGHUP", "SIGBREAK")
    return [getattr(signal, name) for name in names if hasattr(signal, name)]


def install_cleanup_handlers(
    cleanup: Callable[[], Any],
    at_exit: bool = False,
) -> dict[signal.Signals, Any]:
    """Run cleanup and exit 0 when the process is asked to terminate.

    Args:
        cleanup: Callback, e.g. HandoffStore.delete. Errors are logged.
        at_exit: Also run cleanup at interpreter exit. Only the
            post-commit hook wants this; pre-commit must keep its record.

    Returns:
        Previous handlers, for restore_handlers().
    """

    def _run_cleanup() -> None:
        try:
            cleanup()
        except Exception as e:
            logger.warning(f"Cleanup failed: {e}")

    def _handle(signum: int, frame: Optional[FrameType]) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, cleaning up...")
        _run_cleanup()
        sys.exit(EXIT_STATUS)

    previous = {}
    for sig in termination_signals():
        try:
            previous[sig] = signal.signal(sig, _handle)
        except (ValueError, OSError):
            # Not the main thread, or not supported here
            continue

    if at_exit:
        atexit.register(_run_cleanup)

    return previous


def restore_handlers(previous: dict[signal.Signals, Any]) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)
