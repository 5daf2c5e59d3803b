"""External generator invocation.

The generator is a separate binary (or docker image) with its own command
line. The flags below are what the hooks have always passed to it.
"""

# =============================================================================
# Backends
# =============================================================================
# Docker is tried first; the local executable is the fallback. The container
# mounts the project at CONTAINER_WORKDIR and runs from there.

DOCKER_IMAGE = "llm-readme-generator:latest"
DOCKER_CONTAINER_NAME = "llm-readme-runner"
CONTAINER_WORKDIR = "/app"
LOCAL_EXECUTABLE_PATH = "apps/backend/bin/llm-readme-generator/llm-readme-generator-win-x64.exe"

# =============================================================================
# Generator Arguments
# =============================================================================
# GENERATOR_FLAGS follow the target directories on every invocation.
# RECURSIVE_FLAG is added only when the scope is the whole tree.
# LOCAL_EXTRA_FLAGS keep the local executable out of its own install dir.

GENERATE_SUBCOMMAND = "generate"
GENERATOR_FLAGS = (
    "--target",
    "llm",
    "--format",
    "json",
    "--detect-placeholders",
    "--placeholder-confidence",
    "20",
    "--placeholder-analysis-level",
    "enhanced",
)
RECURSIVE_FLAG = "--recursive"
LOCAL_EXTRA_FLAGS = ("--exclude-patterns", "apps/")

# =============================================================================
# Commit
# =============================================================================

DEFAULT_COMMIT_MESSAGE = (
    "Generated master index with deduplicode.ai - "
    "Enhanced project documentation and analysis"
)
