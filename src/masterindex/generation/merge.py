"""Moving generated artifacts into the flat master index.

Each artifact is moved, not copied: after a merge no artifact is left
outside the index except those under excluded directories.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from masterindex.constants import MERGE_EXCLUDED_DIRS
from masterindex.generation.naming import ArtifactReference, artifact_reference
from masterindex.repo.file_filter import DirectoryFilter

logger = logging.getLogger(__name__)


class FilesystemError(Exception):
    """Raised when an artifact cannot be relocated."""

    def __init__(self, message: str, original_error: Optional[str] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class MergeAction(str, Enum):
    """Outcome for a single artifact."""

    NEW = "new"
    UPDATE = "update"
    SKIPPED = "skipped"
    EXCLUDED = "excluded"


@dataclass
class MergeResult:
    """Summary of a merge pass.

    Excluded artifacts count as skipped but not as found.
    """

    found: int = field(default=0)
    new: int = field(default=0)
    updated: int = field(default=0)
    skipped: int = field(default=0)
    actions: list[tuple[ArtifactReference, MergeAction]] = field(default_factory=list)

    def counters(self) -> dict[str, int]:
        return {
            "found": self.found,
            "new": self.new,
            "updated": self.updated,
            "skipped": self.skipped,
        }

    def record(self, reference: ArtifactReference, action: MergeAction) -> None:
        self.actions.append((reference, action))
        if action is MergeAction.NEW:
            self.new += 1
        elif action is MergeAction.UPDATE:
            self.updated += 1
        else:
            self.skipped += 1


def relocate(source: Path, destination: Path) -> str:
    """Move a file, overwriting the destination.

    Tries an atomic rename first and falls back to copy-then-delete, which
    also works across filesystems.

    Returns:
        "moved" or "copied+deleted".

    Raises:
        FilesystemError: If neither strategy succeeds.
    """
    try:
        os.replace(source, destination)
        return "moved"
    except OSError as rename_error:
        logger.debug(f"Rename failed ({rename_error}), copying instead")
    try:
        shutil.copy2(source, destination)
        source.unlink()
        return "copied+deleted"
    except OSError as e:
        raise FilesystemError(
            f"Failed to move {source} to {destination}", original_error=str(e)
        ) from e


class IndexMerger:
    """Moves artifacts into the master index and classifies each one."""

    def __init__(
        self,
        project_root: Path,
        index_path: Path,
        excluded_dirs: Iterable[str] = MERGE_EXCLUDED_DIRS,
    ):
        """Initialize the merger.

        Args:
            project_root: Root the artifact paths are relative to.
            index_path: Master index directory.
            excluded_dirs: Artifacts below these directory names are skipped.
        """
        self.project_root = project_root
        self.index_path = index_path
        self.directory_filter = DirectoryFilter(excluded_dirs)

    def merge(self, artifact_paths: Iterable[str]) -> MergeResult:
        """Move every artifact into the master index.

        A failure on one artifact is logged and counted as skipped; the rest
        of the batch still runs.

        Args:
            artifact_paths: Artifact paths relative to the project root.

        Returns:
            Counters and per-artifact actions.
        """
        result = MergeResult()

        for relative_path in artifact_paths:
            reference = artifact_reference(relative_path)

            if self.directory_filter.matches(relative_path):
                logger.info(f"SKIP {relative_path} (excluded)")
                result.record(reference, MergeAction.EXCLUDED)
                continue

            result.found += 1
            result.record(reference, self._merge_one(reference))

        logger.info("Collection complete")
        logger.info(f"Files found: {result.found}")
        logger.info(f"New files: {result.new}")
        logger.info(f"Updated files: {result.updated}")
        logger.info(f"Skipped files: {result.skipped}")
        logger.info(f"Target directory: {self.index_path.name}/")
        return result

    def _merge_one(self, reference: ArtifactReference) -> MergeAction:
        source = self.project_root / reference.source_relative_path
        destination = self.index_path / reference.canonical_name

        if not source.is_file():
            logger.warning(f"Source file does not exist: {source}")
            return MergeAction.SKIPPED

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create directory {destination.parent}: {e}")
            return MergeAction.SKIPPED

        action = MergeAction.UPDATE if destination.exists() else MergeAction.NEW

        try:
            how = relocate(source, destination)
        except FilesystemError as e:
            logger.error(f"Failed to move {reference.source_relative_path}: {e.original_error}")
            return MergeAction.SKIPPED

        logger.info(
            f"  {action.name} ({how}) "
            f"{reference.source_relative_path} -> {reference.canonical_name}"
        )
        return action
