"""Canonical master index filenames.

Every artifact is stored flat in the master index under a name derived from
the directory it was generated for: "packages/api/llmreadme.json" becomes
"packages-api.json", the project root becomes "project-root.json".
"""

import re
from typing import NamedTuple

from masterindex.constants import (
    ARTIFACT_FILENAMES,
    CANONICAL_EXTENSION,
    CONVENTIONAL_DIRECTORY_NAMES,
    CONVENTIONAL_SUFFIX,
    ROOT_CANONICAL_NAME,
)

_LEADING_PREFIX = re.compile(r"^[.\\/]+")
_SEPARATORS = re.compile(r"[\\/]+")

# "llmreadme" and "llmreadme-enhanced"; a token equal to one of these would
# flatten to an artifact filename
_ARTIFACT_STEMS = frozenset(name[: -len(CANONICAL_EXTENSION)] for name in ARTIFACT_FILENAMES)


class ArtifactReference(NamedTuple):
    """A discovered artifact and the name it gets in the master index."""

    source_relative_path: str
    canonical_name: str


def _split(path: str) -> tuple[str, str]:
    """Split into (directory, basename) on either separator."""
    normalized = path.rstrip("\\/")
    match = re.search(r"[\\/](?=[^\\/]*$)", normalized)
    if match is None:
        return "", normalized
    return normalized[: match.start()], normalized[match.end() :]


def is_canonical_name(name: str) -> bool:
    """Check whether a name is already a master index filename."""
    return (
        bool(name)
        and _SEPARATORS.search(name) is None
        and name.endswith(CANONICAL_EXTENSION)
        and name not in ARTIFACT_FILENAMES
    )


def canonical_filename(source_relative_path: str) -> str:
    """Map an artifact path to its flat master index filename.

    Both artifact variants map to the same name; the variant is not part of
    the canonical name. Applying the function to its own output returns the
    output unchanged.

    Args:
        source_relative_path: Artifact path relative to the project root,
            using "/" or "\\" separators.

    Returns:
        Filename inside the master index.
    """
    directory, basename = _split(source_relative_path)

    if directory in ("", "."):
        if not directory and is_canonical_name(basename):
            return basename
        return ROOT_CANONICAL_NAME

    token = _SEPARATORS.sub("-", _LEADING_PREFIX.sub("", directory))
    if not token:
        # Only separators and dots, e.g. "./llmreadme.json"
        return ROOT_CANONICAL_NAME

    if token in CONVENTIONAL_DIRECTORY_NAMES or token in _ARTIFACT_STEMS:
        return f"{token}{CONVENTIONAL_SUFFIX}{CANONICAL_EXTENSION}"
    return f"{token}{CANONICAL_EXTENSION}"


def artifact_reference(source_relative_path: str) -> ArtifactReference:
    return ArtifactReference(source_relative_path, canonical_filename(source_relative_path))
