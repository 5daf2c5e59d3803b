"""Git plumbing used by the hooks, with friendly error handling.

Everything except locating the git directory goes through the git CLI via
CommandRunner, so timeouts and retries apply uniformly.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from git import InvalidGitRepositoryError, NoSuchPathError, Repo

from masterindex.repo.commands import CommandError, CommandRunner

logger = logging.getLogger(__name__)


class GitOperationError(Exception):
    """Error during a git operation."""

    def __init__(self, message: str, original_error: Optional[str] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


def _lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def _as_prefix(directory: str) -> str:
    return directory.strip("/").replace("\\", "/") + "/"


def find_git_dir(workspace_path: Path) -> Path:
    """Locate the repository's private git directory.

    Handles linked worktrees and submodules, where ".git" is a file rather
    than a directory. Falls back to "<workspace>/.git" when the workspace is
    not (yet) a repository.

    Args:
        workspace_path: Path inside the working tree.

    Returns:
        Path to the git directory.
    """
    try:
        repo = Repo(workspace_path, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        logger.debug(f"No git repository found at {workspace_path}, assuming .git")
        return workspace_path / ".git"
    try:
        return Path(repo.git_dir)
    finally:
        repo.close()


def get_staged_files(runner: CommandRunner, exclude_dir: Optional[str] = None) -> list[str]:
    """List staged file paths.

    Args:
        runner: Command runner rooted at the working tree.
        exclude_dir: Directory whose files are left out (e.g. the master index).

    Returns:
        Paths relative to the repository root, in git's order.

    Raises:
        GitOperationError: If git cannot be queried.
    """
    try:
        output = runner.run(["git", "diff", "--name-only", "--cached"], retries=1)
    except CommandError as e:
        raise GitOperationError(
            "Could not list staged files.", original_error=e.message
        ) from e

    files = _lines(output)
    if exclude_dir:
        prefix = _as_prefix(exclude_dir)
        files = [f for f in files if not f.startswith(prefix)]
    logger.debug(f"Found {len(files)} staged files")
    return files


def stage_path(runner: CommandRunner, path: str, timeout: Optional[float] = None) -> None:
    """Stage everything below a path.

    Raises:
        GitOperationError: If git add fails.
    """
    try:
        runner.run(["git", "add", "--", _as_prefix(path)], retries=1, timeout=timeout)
    except CommandError as e:
        raise GitOperationError(f"Failed to stage {path}/.", original_error=e.message) from e


def get_staged_files_under(runner: CommandRunner, path: str) -> list[str]:
    """List staged files restricted to one directory.

    Raises:
        GitOperationError: If git cannot be queried.
    """
    try:
        output = runner.run(
            ["git", "diff", "--name-only", "--cached", "--", _as_prefix(path)], retries=1
        )
    except CommandError as e:
        raise GitOperationError(
            f"Could not verify staged files in {path}/.", original_error=e.message
        ) from e
    return _lines(output)


def commit(
    runner: CommandRunner,
    message: str,
    no_verify: bool = True,
    timeout: Optional[float] = None,
) -> str:
    """Create a commit from the current index.

    Args:
        runner: Command runner rooted at the working tree.
        message: Commit message, passed as a single argument.
        no_verify: Skip pre-commit and commit-msg hooks.
        timeout: Timeout override in seconds.

    Returns:
        Output of git commit.

    Raises:
        GitOperationError: If the commit fails.
    """
    args = ["git", "commit", "-m", message]
    if no_verify:
        args.append("--no-verify")
    try:
        return runner.run(args, retries=1, timeout=timeout)
    except CommandError as e:
        raise GitOperationError(
            _parse_commit_error(e.original_error or e.message), original_error=e.message
        ) from e


def _parse_commit_error(stderr: str) -> str:
    """Convert git commit error to user-friendly message."""
    stderr_lower = stderr.lower()

    if "nothing to commit" in stderr_lower or "no changes added" in stderr_lower:
        return "Nothing to commit."

    if "please tell me who you are" in stderr_lower or "user.email" in stderr_lower:
        return "Git user identity is not configured (user.name / user.email)."

    if "index.lock" in stderr_lower:
        return "Another git process holds the index lock."

    return f"Commit failed: {stderr.strip()}"
