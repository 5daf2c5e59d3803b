"""Artifact generation, discovery and merging into the master index."""

from masterindex.generation.collector import ArtifactCollector
from masterindex.generation.generator import (
    ExternalGenerator,
    GeneratorBackend,
    docker_mount_candidates,
)
from masterindex.generation.merge import (
    FilesystemError,
    IndexMerger,
    MergeAction,
    MergeResult,
    relocate,
)
from masterindex.generation.naming import ArtifactReference, canonical_filename
from masterindex.generation.targets import TargetDirectoryResolver, is_whole_tree

__all__ = [
    "ArtifactCollector",
    "ArtifactReference",
    "ExternalGenerator",
    "FilesystemError",
    "GeneratorBackend",
    "IndexMerger",
    "MergeAction",
    "MergeResult",
    "TargetDirectoryResolver",
    "canonical_filename",
    "docker_mount_candidates",
    "is_whole_tree",
    "relocate",
]
