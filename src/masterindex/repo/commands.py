"""Bounded, retried execution of external commands."""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

logger = logging.getLogger(__name__)

Command = Union[str, Sequence[str]]

# Delay before retry n (1-based) is BACKOFF_BASE_SECONDS * 2 ** (n - 1)
BACKOFF_BASE_SECONDS = 1.0


class CommandError(Exception):
    """Error while running an external command."""

    def __init__(self, message: str, original_error: Optional[str] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class TransientCommandError(CommandError):
    """A single attempt failed (timeout, non-zero exit or missing binary)."""

    def __init__(
        self,
        message: str,
        original_error: Optional[str] = None,
        timed_out: bool = False,
    ):
        self.timed_out = timed_out
        super().__init__(message, original_error=original_error)


class FatalCommandError(CommandError):
    """Every attempt failed; carries the error text of the last one."""

    def __init__(self, message: str, original_error: Optional[str] = None, attempts: int = 0):
        self.attempts = attempts
        super().__init__(message, original_error=original_error)


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the given failed attempt (1-based)."""
    return BACKOFF_BASE_SECONDS * 2 ** (attempt - 1)


def format_command(command: Command) -> str:
    if isinstance(command, str):
        return command
    return shlex.join(command)


class CommandRunner:
    """Runs commands with a timeout and an exponential-backoff retry limit."""

    def __init__(
        self,
        cwd: Path,
        timeout: float,
        max_retries: int,
        verbose: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the runner.

        Args:
            cwd: Working directory for every command.
            timeout: Default per-attempt timeout in seconds.
            max_retries: Default number of attempts.
            verbose: Echo stderr of successful commands at DEBUG level.
            sleep: Blocking delay used between attempts.
        """
        self.cwd = cwd
        self.timeout = timeout
        self.max_retries = max_retries
        self.verbose = verbose
        self._sleep = sleep

    def run(
        self,
        command: Command,
        *,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
    ) -> str:
        """Run a command until it succeeds or every retry is spent.

        Args:
            command: Argument list, or a string split with shlex.
            timeout: Per-attempt timeout override in seconds.
            retries: Attempt count override.

        Returns:
            Captured stdout of the successful attempt.

        Raises:
            FatalCommandError: If every attempt failed.
        """
        args = shlex.split(command) if isinstance(command, str) else list(command)
        timeout = self.timeout if timeout is None else timeout
        attempts = max(1, self.max_retries if retries is None else retries)
        display = format_command(args)

        last_error: Optional[TransientCommandError] = None
        for attempt in range(1, attempts + 1):
            logger.debug(f"Executing command (attempt {attempt}/{attempts}): {display}")
            try:
                output = self._run_once(args, timeout)
            except TransientCommandError as e:
                last_error = e
                if e.timed_out:
                    logger.warning(f"Command timed out on attempt {attempt}/{attempts}")
                else:
                    logger.warning(f"Command failed on attempt {attempt}/{attempts}: {e.message}")

                if attempt == attempts:
                    break

                delay = backoff_delay(attempt)
                logger.debug(f"Waiting {delay:g}s before retry...")
                self._sleep(delay)
                continue

            logger.debug(f"Command executed successfully on attempt {attempt}")
            return output

        assert last_error is not None
        raise FatalCommandError(
            f"Command failed after {attempts} attempts: {last_error.message}",
            original_error=last_error.original_error,
            attempts=attempts,
        )

    def _run_once(self, args: list[str], timeout: float) -> str:
        """Run a single attempt, translating every failure to TransientCommandError."""
        try:
            result = subprocess.run(
                args,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise TransientCommandError(
                f"Timed out after {timeout:g}s: {format_command(args)}",
                timed_out=True,
            )
        except OSError as e:
            # Missing binary or permission denied
            raise TransientCommandError(
                f"Could not start {args[0]!r}: {e.strerror or e}",
                original_error=str(e),
            )

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip()
            message = f"Exit status {result.returncode}: {format_command(args)}"
            if detail:
                message = f"{message}\n{detail}"
            raise TransientCommandError(message, original_error=detail or None)

        if self.verbose and result.stderr and result.stderr.strip():
            logger.debug(result.stderr.rstrip())

        return result.stdout
