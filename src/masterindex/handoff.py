"""Handoff record shared between the pre-commit and post-commit hooks.

The two hooks run as separate processes. Pre-commit leaves a small JSON
record inside the git directory; post-commit consumes and deletes it. A
missing or unreadable record always means "nothing pending".
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from masterindex.repo.git_operations import find_git_dir

logger = logging.getLogger(__name__)

HANDOFF_VERSION = 1


class MetadataError(Exception):
    """Raised when a handoff record cannot be read or parsed."""

    pass


class HandoffMetadata(BaseModel):
    """What the post-commit hook needs to create the master index commit."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: int = Field(
        HANDOFF_VERSION, ge=1, le=HANDOFF_VERSION, description="Record format version"
    )
    timestamp: str = Field(..., description="ISO-8601 time the record was written")
    commit_message: str = Field(
        ...,
        alias="commitMessage",
        min_length=1,
        description="Message for the master index commit",
    )
    has_artifacts: bool = Field(
        ...,
        alias="hasArtifacts",
        # Older records use hasLlmReadmeFiles
        validation_alias=AliasChoices("hasArtifacts", "hasLlmReadmeFiles", "has_artifacts"),
        description="Whether the master index holds output to commit",
    )

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: str) -> str:
        candidate = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            datetime.fromisoformat(candidate)
        except ValueError as e:
            raise ValueError(f"timestamp is not ISO-8601: {value!r}") from e
        return value

    @classmethod
    def create(cls, commit_message: str, has_artifacts: bool = True) -> "HandoffMetadata":
        """Build a record stamped with the current UTC time."""
        return cls(
            timestamp=datetime.now(timezone.utc).isoformat(),
            commit_message=commit_message,
            has_artifacts=has_artifacts,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)


def parse_metadata(content: str) -> HandoffMetadata:
    """Parse a serialized handoff record.

    Raises:
        MetadataError: If the content is not valid JSON or fails validation.
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Handoff record is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MetadataError("Handoff record must be a JSON object")
    try:
        return HandoffMetadata.model_validate(data)
    except ValidationError as e:
        raise MetadataError(f"Handoff record failed validation: {e}") from e


class HandoffStore:
    """Persists a single HandoffMetadata record at a fixed path."""

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: Location of the record, normally inside the git directory.
        """
        self.path = path

    @classmethod
    def for_repository(cls, workspace_path: Path, filename: str) -> "HandoffStore":
        """Create a store for the repository containing workspace_path."""
        return cls(find_git_dir(workspace_path) / filename)

    def exists(self) -> bool:
        return self.path.is_file()

    def write(self, metadata: HandoffMetadata) -> None:
        """Write the record, replacing any previous one.

        The content goes to a temporary sibling first so an interrupted
        write never leaves a truncated record behind.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(metadata.to_json(), encoding="utf-8")
        os.replace(tmp_path, self.path)
        logger.debug(f"Handoff metadata saved to {self.path}")

    def read(self) -> HandoffMetadata:
        """Read the record strictly.

        Raises:
            MetadataError: If the record is missing or malformed.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise MetadataError(f"No handoff record at {self.path}") from e
        except OSError as e:
            raise MetadataError(f"Cannot read handoff record {self.path}: {e}") from e
        return parse_metadata(content)

    def load(self) -> Optional[HandoffMetadata]:
        """Read the record, treating a missing or malformed one as absent.

        Returns:
            The record, or None if nothing is pending.
        """
        if not self.exists():
            logger.debug("No handoff metadata found")
            return None
        try:
            metadata = self.read()
        except MetadataError as e:
            logger.error(f"Failed to load handoff metadata: {e}")
            return None
        logger.debug("Handoff metadata loaded")
        return metadata

    def delete(self) -> bool:
        """Remove the record if present. Never raises.

        Returns:
            True if a record was removed.
        """
        removed = False
        for candidate in (self.path, self.path.with_name(self.path.name + ".tmp")):
            try:
                candidate.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Failed to clean up handoff metadata {candidate}: {e}")
                continue
            if candidate == self.path:
                removed = True
        if removed:
            logger.debug("Handoff metadata cleaned up")
        return removed
