"""Logging setup shared by both hook entry points."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(phase)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Hook verbosity -> logging level. "silent" still reports warnings and errors.
LOG_LEVEL_MAP = {
    "verbose": logging.DEBUG,
    "info": logging.INFO,
    "silent": logging.WARNING,
}


class _PhaseFilter(logging.Filter):
    """Stamps every record with the hook phase for the status-line prefix."""

    def __init__(self, phase: str):
        super().__init__()
        self.phase = phase

    def filter(self, record: logging.LogRecord) -> bool:
        record.phase = self.phase
        return True


def configure_logging(log_level: str = "info", phase: str = "pre-commit") -> logging.Logger:
    """Configure the package logger for a hook process.

    Hooks write status lines to stderr so git shows them in the terminal
    without mixing them into any captured stdout.

    Args:
        log_level: One of "verbose", "info", "silent".
        phase: Label printed in every line, e.g. "pre-commit".

    Returns:
        The configured "masterindex" logger.
    """
    package_logger = logging.getLogger("masterindex")
    package_logger.setLevel(LOG_LEVEL_MAP.get(log_level, logging.INFO))
    package_logger.propagate = False

    package_logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.addFilter(_PhaseFilter(phase))
    package_logger.addHandler(handler)

    return package_logger
