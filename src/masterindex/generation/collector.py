"""Discovery of generator output in the working tree."""

import logging
from pathlib import Path
from typing import Iterable, Optional

from masterindex.constants import (
    ARTIFACT_FILENAMES,
    COLLECTOR_IGNORED_DIRS,
    ENHANCED_ARTIFACT_FILENAME,
    STANDARD_ARTIFACT_FILENAME,
)
from masterindex.repo.file_filter import DirectoryFilter, walk_files

logger = logging.getLogger(__name__)


class ArtifactCollector:
    """Finds every generated artifact file below the project root."""

    def __init__(
        self,
        project_root: Path,
        master_index_dir: str = "master-index",
        ignored_dirs: Optional[Iterable[str]] = None,
        artifact_names: Iterable[str] = ARTIFACT_FILENAMES,
    ):
        """Initialize the collector.

        Args:
            project_root: Directory to walk.
            master_index_dir: Name of the master index, never descended into.
            ignored_dirs: Directory names skipped at any depth. Defaults to
                dependency caches, git metadata and build outputs.
            artifact_names: Exact filenames to collect.
        """
        self.project_root = project_root
        names = COLLECTOR_IGNORED_DIRS if ignored_dirs is None else tuple(ignored_dirs)
        self.directory_filter = DirectoryFilter((*names, master_index_dir))
        self.artifact_names = frozenset(artifact_names)

    def collect(self) -> list[str]:
        """Walk the tree and return artifact paths.

        Returns:
            POSIX paths relative to the project root, in discovery order.
        """
        logger.debug(
            f"Searching for LLM readme files ({', '.join(sorted(self.artifact_names))})..."
        )
        files = list(
            walk_files(
                self.project_root,
                include=lambda name: name in self.artifact_names,
                prune=self.directory_filter.is_excluded_dir,
            )
        )

        standard = sum(1 for f in files if f.rsplit("/", 1)[-1] == STANDARD_ARTIFACT_FILENAME)
        enhanced = sum(1 for f in files if f.rsplit("/", 1)[-1] == ENHANCED_ARTIFACT_FILENAME)
        logger.debug(
            f"Found {len(files)} LLM readme files ({standard} standard, {enhanced} enhanced)"
        )
        if files:
            logger.info("LLM readme files found:")
            for path in files:
                logger.info(f"  - {path}")
        return files
