"""Directory exclusion and a predicate-driven tree walk."""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, Iterator

logger = logging.getLogger(__name__)


def path_parts(path: str) -> list[str]:
    """Split a relative path on either separator, dropping empty and "." parts."""
    return [part for part in path.replace("\\", "/").split("/") if part and part != "."]


class DirectoryFilter:
    """Matches paths that lie inside one of a set of directory names.

    A name matches at any depth: with "node_modules" excluded, both
    "node_modules/x" and "packages/a/node_modules/x" are excluded.
    """

    def __init__(self, names: Iterable[str]):
        self.names = frozenset(names)

    def __repr__(self) -> str:
        return f"DirectoryFilter({sorted(self.names)!r})"

    def is_excluded_dir(self, name: str) -> bool:
        """Check a single directory name."""
        return name in self.names

    def matches(self, relative_path: str) -> bool:
        """Check whether any component of a relative path is excluded.

        Args:
            relative_path: Path relative to the project root.

        Returns:
            True if the path is an excluded directory or lies below one.
        """
        return any(part in self.names for part in path_parts(relative_path))

    def __call__(self, relative_path: str) -> bool:
        return self.matches(relative_path)


def walk_files(
    root: Path,
    include: Callable[[str], bool],
    prune: Callable[[str], bool] = lambda name: False,
) -> Iterator[str]:
    """Walk a tree and yield the relative paths of files accepted by include.

    Entries are visited in name order so discovery order is stable across
    platforms. Directories for which prune(name) is true are not entered,
    wherever they appear. Unreadable directories are logged and skipped.

    Args:
        root: Directory to walk.
        include: Predicate on the file name.
        prune: Predicate on a directory name.

    Yields:
        POSIX-style paths relative to root.
    """
    pending: list[PurePosixPath] = [PurePosixPath()]
    while pending:
        relative_dir = pending.pop()
        directory = root.joinpath(*relative_dir.parts)
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as e:
            logger.warning(f"Cannot read directory {directory}: {e}")
            continue

        subdirs = []
        for entry in entries:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                continue
            if is_dir:
                if not prune(entry.name):
                    subdirs.append(relative_dir / entry.name)
            elif is_file and include(entry.name):
                yield (relative_dir / entry.name).as_posix()

        # Depth-first, preserving name order among siblings
        pending.extend(reversed(subdirs))


def is_directory_empty(path: Path) -> bool:
    """Check if a directory is missing or has no entries.

    Unreadable directories count as empty.
    """
    try:
        if not path.is_dir():
            return True
        return next(path.iterdir(), None) is None
    except OSError as e:
        logger.warning(f"Failed to check if directory is empty: {e}")
        return True
