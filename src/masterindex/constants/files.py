"""Artifact filenames, index naming and directory exclusion lists.

These names are a contract with the external generator and with the layout
of the master index, so they are constants rather than configuration.
"""

# =============================================================================
# Artifact Filenames
# =============================================================================
# The generator writes one of two files into every directory it documents.
# Both variants are collected and both are merged under the same canonical
# name in the master index.

STANDARD_ARTIFACT_FILENAME = "llmreadme.json"
ENHANCED_ARTIFACT_FILENAME = "llmreadme-enhanced.json"
ARTIFACT_FILENAMES = (STANDARD_ARTIFACT_FILENAME, ENHANCED_ARTIFACT_FILENAME)

# =============================================================================
# Canonical Names
# =============================================================================
# The artifact of the project root gets a fixed name. Directories whose
# flattened name is one of the conventional top-level names get a "-root"
# suffix so "docs.json" is never mistaken for a nested "docs" directory
# flattened from elsewhere.

CANONICAL_EXTENSION = ".json"
ROOT_CANONICAL_NAME = "project-root.json"
CONVENTIONAL_SUFFIX = "-root"
CONVENTIONAL_DIRECTORY_NAMES = frozenset({"src", "source", "test", "docs", "tools", "types"})

# =============================================================================
# Scope
# =============================================================================
# A single "." target asks the generator for the whole tree.

WHOLE_TREE = "."

# =============================================================================
# Exclusions
# =============================================================================
# COLLECTOR_IGNORED_DIRS: never descended into while looking for artifacts.
# MERGE_EXCLUDED_DIRS: artifacts found below these are left in place.
# TARGET_EXCLUDED_DIRS: staged changes below these never become targets.
# The master index directory name is added by the components themselves,
# since it is configurable.

COLLECTOR_IGNORED_DIRS = ("node_modules", ".git", "dist", "build")
MERGE_EXCLUDED_DIRS = ("benchmark", "benchmarks", "node_modules", ".git", "dist", "coverage")
TARGET_EXCLUDED_DIRS = ("node_modules", ".git", "dist", "build", "coverage", ".next", ".nuxt")
