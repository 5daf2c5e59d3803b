"""Command execution, tree walking and git plumbing."""

from masterindex.repo.commands import (
    CommandError,
    CommandRunner,
    FatalCommandError,
    TransientCommandError,
)
from masterindex.repo.file_filter import DirectoryFilter, is_directory_empty, walk_files
from masterindex.repo.git_operations import (
    GitOperationError,
    commit,
    find_git_dir,
    get_staged_files,
    get_staged_files_under,
    stage_path,
)

__all__ = [
    "CommandError",
    "CommandRunner",
    "DirectoryFilter",
    "FatalCommandError",
    "GitOperationError",
    "TransientCommandError",
    "commit",
    "find_git_dir",
    "get_staged_files",
    "get_staged_files_under",
    "is_directory_empty",
    "stage_path",
    "walk_files",
]
