"""Choosing which directories the generator should document."""

import logging
import posixpath
from typing import Optional

from masterindex.config import Config
from masterindex.constants import TARGET_EXCLUDED_DIRS, WHOLE_TREE
from masterindex.repo.commands import CommandRunner
from masterindex.repo.file_filter import DirectoryFilter, is_directory_empty, path_parts
from masterindex.repo.git_operations import GitOperationError, get_staged_files

logger = logging.getLogger(__name__)


def is_whole_tree(targets: list[str]) -> bool:
    """Check whether a scope asks for a full scan."""
    return len(targets) == 1 and targets[0] == WHOLE_TREE


def parent_targets(staged_files: list[str]) -> list[str]:
    """Map staged files to their immediate parent directories.

    Files in the project root map to themselves. Order of first appearance
    is kept and duplicates are dropped.
    """
    targets: dict[str, None] = {}
    for file_path in staged_files:
        normalized = file_path.replace("\\", "/").strip()
        if not normalized:
            continue
        parent = posixpath.dirname(normalized)
        targets[parent if parent not in ("", ".") else normalized] = None
    return list(targets)


class TargetDirectoryResolver:
    """Decides the generator scope for the current commit.

    resolve() never raises: whenever the staged changes cannot be turned
    into a usable scope, the whole tree is regenerated instead.
    """

    def __init__(
        self,
        config: Config,
        runner: CommandRunner,
        excluded_dirs: Optional[DirectoryFilter] = None,
    ):
        self.config = config
        self.runner = runner
        self.excluded_dirs = excluded_dirs or DirectoryFilter(TARGET_EXCLUDED_DIRS)

    def resolve(self) -> list[str]:
        """Return the directories to (re)generate artifacts for.

        Returns:
            Explicitly configured directories, the parents of staged files,
            or [WHOLE_TREE].
        """
        if self.config.target_directories:
            targets = list(self.config.target_directories)
            logger.info(f"Using configured target directories: {', '.join(targets)}")
            return targets

        if is_directory_empty(self.config.master_index_path):
            logger.info(
                f"{self.config.paths.master_index_dir}/ is missing or empty - running full scan"
            )
            return [WHOLE_TREE]

        try:
            return self._from_staged_files()
        except Exception as e:
            logger.warning(f"Failed to determine target directories: {e}")
            logger.info("Falling back to root directory")
            return [WHOLE_TREE]

    def _is_infrastructure(self, target: str) -> bool:
        """Only a top-level excluded directory disqualifies a target.

        "dist/main.js" is dropped; "src/build" is kept and scanned.
        """
        parts = path_parts(target)
        return bool(parts) and self.excluded_dirs.is_excluded_dir(parts[0])

    def _from_staged_files(self) -> list[str]:
        try:
            staged = get_staged_files(self.runner, exclude_dir=self.config.paths.master_index_dir)
        except GitOperationError as e:
            logger.warning(f"Failed to get staged files: {e.message}")
            staged = []

        if not staged:
            logger.info("No staged files found - using root directory for analysis")
            return [WHOLE_TREE]

        logger.info(f"Found {len(staged)} staged files, analyzing for target directories...")
        targets = [t for t in parent_targets(staged) if not self._is_infrastructure(t)]

        if not targets:
            logger.info("No valid target paths found - using root directory")
            return [WHOLE_TREE]

        logger.info(f"Target paths based on staged changes: {', '.join(targets)}")
        logger.debug(f"Changed files: {', '.join(staged)}")
        return targets
