"""Invoking the external LLM readme generator.

The generator runs either from a docker image or as a local executable.
Docker is preferred when the image is present; the local executable is
used otherwise, and also as a fallback when the docker run fails.
"""

from __future__ import annotations

import logging
import re
import sys
import time
from enum import Enum
from typing import Optional

from masterindex.config import Config
from masterindex.constants import (
    CONTAINER_WORKDIR,
    DOCKER_CONTAINER_NAME,
    GENERATE_SUBCOMMAND,
    GENERATOR_FLAGS,
    LOCAL_EXTRA_FLAGS,
    RECURSIVE_FLAG,
)
from masterindex.generation.targets import is_whole_tree
from masterindex.repo.commands import CommandError, CommandRunner

logger = logging.getLogger(__name__)

_DRIVE_PREFIX = re.compile(r"^([A-Za-z]):")


class GeneratorBackend(str, Enum):
    """Where the generator runs."""

    DOCKER = "docker"
    LOCAL = "local"


def docker_mount_candidates(project_root: str, platform: str = sys.platform) -> list[str]:
    """Host paths to try as the docker volume source, in order.

    On Windows, Docker Desktop usually accepts the native path, but some
    setups only accept forward slashes, no drive letter, or the
    "/c/Users/..." form. Other platforms use the path as is.

    Args:
        project_root: Absolute project path as the OS reports it.
        platform: Value of sys.platform.

    Returns:
        Distinct candidate paths, native path first.
    """
    candidates = [project_root]
    if platform.startswith("win"):
        forward = project_root.replace("\\", "/")
        without_drive = _DRIVE_PREFIX.sub("", forward)
        drive = _DRIVE_PREFIX.match(forward)
        if drive:
            unix_style = f"/{drive.group(1).lower()}{without_drive}"
        else:
            unix_style = f"/{without_drive.lstrip('/')}"
        candidates.extend([forward, without_drive, unix_style])
    return list(dict.fromkeys(candidates))


class ExternalGenerator:
    """Detects a generator backend and runs it with fallbacks."""

    def __init__(
        self,
        config: Config,
        runner: CommandRunner,
        platform: str = sys.platform,
        clock=time.monotonic,
    ):
        self.config = config
        self.runner = runner
        self.platform = platform
        self._clock = clock

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def docker_available(self) -> bool:
        """Check that docker runs and the generator image is present."""
        probe = self.config.generator.probe_timeout
        image = self.config.generator.docker_image
        try:
            version = self.runner.run(["docker", "--version"], retries=1, timeout=probe)
        except CommandError as e:
            logger.warning(f"Docker not available: {e.message}")
            return False
        if not version.strip():
            logger.warning("Docker command returned empty response")
            return False
        logger.debug(f"Docker found: {version.strip()}")

        try:
            self.runner.run(["docker", "image", "inspect", image], retries=1, timeout=probe)
        except CommandError as e:
            logger.warning(f"Docker image {image} not found: {e.message}")
            return False
        return True

    def local_available(self) -> bool:
        path = self.config.local_executable_path
        logger.debug(f"Checking for local LLM generator at: {path}")
        return path.is_file()

    def detect_backend(self) -> Optional[GeneratorBackend]:
        """Pick the backend according to the configured runner mode.

        Returns:
            The backend to use, or None if no generator is available.
        """
        mode = self.config.runner_mode

        if mode in ("auto", "docker"):
            logger.debug("Checking for Docker availability...")
            if self.docker_available():
                logger.info(f"Using docker image {self.config.generator.docker_image}")
                return GeneratorBackend.DOCKER
            if mode == "docker":
                return None

        if self.local_available():
            logger.info(f"Using local executable {self.config.local_executable_path}")
            return GeneratorBackend.LOCAL

        logger.warning(f"Local LLM generator not found at: {self.config.local_executable_path}")
        return None

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def generator_arguments(self, targets: list[str]) -> list[str]:
        args = [GENERATE_SUBCOMMAND, *targets, *GENERATOR_FLAGS]
        if is_whole_tree(targets):
            args.append(RECURSIVE_FLAG)
        return args

    def docker_command(self, targets: list[str], mount_path: Optional[str] = None) -> list[str]:
        mount = mount_path or str(self.config.workspace_path)
        return [
            "docker",
            "run",
            "--rm",
            "--name",
            DOCKER_CONTAINER_NAME,
            "-v",
            f"{mount}:{CONTAINER_WORKDIR}",
            "-w",
            CONTAINER_WORKDIR,
            self.config.generator.docker_image,
            *self.generator_arguments(targets),
        ]

    def local_command(self, targets: list[str]) -> list[str]:
        return [
            str(self.config.local_executable_path),
            *self.generator_arguments(targets),
            *LOCAL_EXTRA_FLAGS,
        ]

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _attempt(self, label: str, command: list[str]) -> bool:
        started = self._clock()
        try:
            self.runner.run(command)
        except CommandError as e:
            logger.warning(f"LLM readme generation failed ({label}): {e.message}")
            return False
        elapsed_ms = int((self._clock() - started) * 1000)
        logger.info(f"LLM readme generation completed successfully ({label}) in {elapsed_ms}ms")
        return True

    def generate(
        self, backend: GeneratorBackend, targets: list[str]
    ) -> Optional[GeneratorBackend]:
        """Run the generator, falling back to the other strategies on failure.

        Order: the detected backend; for docker, the alternate mount path
        encodings; then the local executable if it exists.

        Args:
            backend: Backend returned by detect_backend().
            targets: Directories to generate artifacts for.

        Returns:
            The backend that succeeded, or None if every strategy failed.
        """
        if is_whole_tree(targets):
            logger.info(f"Full scan detected - adding {RECURSIVE_FLAG} flag")
        else:
            logger.info(f"Targeted scan of {len(targets)} path(s)")

        if backend is GeneratorBackend.LOCAL:
            if self._attempt("local executable", self.local_command(targets)):
                return GeneratorBackend.LOCAL
            return None

        mounts = docker_mount_candidates(str(self.config.workspace_path), self.platform)
        if self._attempt("docker", self.docker_command(targets, mounts[0])):
            return GeneratorBackend.DOCKER

        for index, mount in enumerate(mounts[1:], start=1):
            logger.info(f"Trying alternative path format {index}: {mount}")
            if self._attempt(f"docker, path format {index}", self.docker_command(targets, mount)):
                return GeneratorBackend.DOCKER

        if self.config.runner_mode != "docker" and self.local_available():
            logger.info("Docker failed - falling back to local executable")
            if self._attempt("local executable", self.local_command(targets)):
                return GeneratorBackend.LOCAL

        return None
