"""Configuration system for the master index hooks.

This module handles loading settings from an INI file in the workspace root
and from environment variables, validating them against a schema, and
building the immutable Config record that every component receives.
"""

from configparser import ConfigParser
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os

from masterindex.constants import DEFAULT_COMMIT_MESSAGE, DOCKER_IMAGE, LOCAL_EXECUTABLE_PATH

CONFIG_FILENAME = ".masterindex.ini"

LOG_LEVELS = ("info", "verbose", "silent")
RUNNER_MODES = ("auto", "docker", "local")
PHASES = ("pre", "post")


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "hook": {
        "timeout": (int, 300, 1, 3600, "Per-command timeout in seconds (pre-commit)"),
        "post_commit_timeout": (int, 30, 1, 3600, "Per-command timeout in seconds (post-commit)"),
        "max_retries": (int, 3, 1, 10, "Attempts per command before giving up"),
        "log_level": (str, "verbose", None, None, "Pre-commit verbosity: info, verbose, silent"),
        "post_commit_log_level": (str, "info", None, None, "Post-commit verbosity"),
        "separate_commits": (bool, True, None, None, "Commit the master index separately"),
        "commit_message": (str, DEFAULT_COMMIT_MESSAGE, None, None, "Master index commit message"),
        "runner": (str, "auto", None, None, "Generator backend: auto, docker, local"),
        "target_directories": (str, "", None, None, "Comma-separated explicit targets"),
    },
    "generator": {
        "docker_image": (str, DOCKER_IMAGE, None, None, "Docker image of the generator"),
        "local_executable": (str, LOCAL_EXECUTABLE_PATH, None, None, "Local generator path"),
        "probe_timeout": (int, 5, 1, 120, "Timeout for docker availability checks"),
        "settle_seconds": (float, 2.0, 0.0, 60.0, "Delay before collecting artifacts"),
    },
    "git": {
        "staging_timeout": (int, 60, 1, 3600, "Timeout for git add of the master index"),
        "commit_timeout": (int, 60, 1, 3600, "Timeout for the master index commit"),
    },
    "paths": {
        "master_index_dir": (str, "master-index", None, None, "Master index directory name"),
        "metadata_file": (str, "llm-readme-metadata.json", None, None, "Handoff file name"),
    },
}

# Allowed values for enumerated string settings
CONFIG_CHOICES: dict[tuple[str, str], tuple[str, ...]] = {
    ("hook", "log_level"): LOG_LEVELS,
    ("hook", "post_commit_log_level"): LOG_LEVELS,
    ("hook", "runner"): RUNNER_MODES,
}


@dataclass(frozen=True)
class GeneratorConfig:
    """External generator configuration."""

    docker_image: str
    local_executable: str
    probe_timeout: int
    settle_seconds: float


@dataclass(frozen=True)
class GitConfig:
    """Timeouts for git plumbing commands."""

    staging_timeout: int
    commit_timeout: int


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    master_index_dir: str
    metadata_file: str


def _section_defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            result[key] = _coerce(section, key, typ, raw_value)
        else:
            result[key] = default

        value = result[key]

        # Validate range for numeric types
        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        choices = CONFIG_CHOICES.get((section, key))
        if choices is not None and value not in choices:
            raise ConfigError(
                f"Value for [{section}].{key} is {value!r}, expected one of {', '.join(choices)}"
            )

    return result


def _coerce(section: str, key: str, typ: type, raw_value: str) -> Any:
    """Convert a raw INI/environment string to the schema type."""
    try:
        if typ is bool:
            return raw_value.strip().lower() in ("true", "1", "yes", "on")
        if typ is int:
            return int(raw_value)
        if typ is float:
            return float(raw_value)
        return raw_value.strip()
    except ValueError as e:
        raise ConfigError(
            f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
        ) from e


def parse_target_directories(raw: str) -> tuple[str, ...]:
    """Split a comma-separated target list, dropping blanks."""
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Config:
    """Complete configuration for one hook invocation.

    Built once per phase by load_settings() and handed to every component;
    nothing mutates it during a run. Phase-specific variants are derived
    with for_phase(), which returns a new record.
    """

    workspace_path: Path
    timeout: int = 300
    max_retries: int = 3
    log_level: str = "verbose"
    separate_commits: bool = True
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    runner_mode: str = "auto"
    target_directories: tuple[str, ...] = ()
    post_commit_timeout: int = 30
    post_commit_log_level: str = "info"

    generator: GeneratorConfig = field(
        default_factory=lambda: GeneratorConfig(**_section_defaults("generator"))
    )
    git: GitConfig = field(default_factory=lambda: GitConfig(**_section_defaults("git")))
    paths: PathsConfig = field(
        default_factory=lambda: PathsConfig(**_section_defaults("paths"))
    )

    @property
    def master_index_path(self) -> Path:
        """Path to the flat master index directory."""
        return self.workspace_path / self.paths.master_index_dir

    @property
    def local_executable_path(self) -> Path:
        """Absolute path of the local generator executable."""
        return self.workspace_path / self.generator.local_executable

    @property
    def verbose(self) -> bool:
        return self.log_level == "verbose"

    def for_phase(self, phase: str) -> "Config":
        """Return the configuration as seen by the given phase.

        Args:
            phase: "pre" or "post".

        Returns:
            A new Config; the post-commit phase uses its own timeout and
            log level.
        """
        if phase not in PHASES:
            raise ConfigError(f"Unknown phase {phase!r}, expected one of {', '.join(PHASES)}")
        if phase == "pre":
            return self
        return replace(
            self,
            timeout=self.post_commit_timeout,
            log_level=self.post_commit_log_level,
        )


def _load_config(workspace_path: Path, config_path: Optional[Path] = None) -> Config:
    """Load configuration from an INI file (internal use only).

    Args:
        workspace_path: Project root the hooks operate on.
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Config object with all sections populated

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser(interpolation=None)

    if config_path and config_path.exists():
        parser.read(config_path, encoding="utf-8")

    hook = _load_section(parser, "hook", CONFIG_SCHEMA["hook"])
    generator = GeneratorConfig(**_load_section(parser, "generator", CONFIG_SCHEMA["generator"]))
    git = GitConfig(**_load_section(parser, "git", CONFIG_SCHEMA["git"]))
    paths = PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"]))

    return Config(
        workspace_path=workspace_path,
        timeout=hook["timeout"],
        max_retries=hook["max_retries"],
        log_level=hook["log_level"],
        separate_commits=hook["separate_commits"],
        commit_message=hook["commit_message"],
        runner_mode=hook["runner"],
        target_directories=parse_target_directories(hook["target_directories"]),
        post_commit_timeout=hook["post_commit_timeout"],
        post_commit_log_level=hook["post_commit_log_level"],
        generator=generator,
        git=git,
        paths=paths,
    )


def _env_override(name: str, section: str, key: str) -> Optional[Any]:
    """Read and validate a single environment override."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    typ = CONFIG_SCHEMA[section][key][0]
    value = _coerce(section, key, typ, raw)
    choices = CONFIG_CHOICES.get((section, key))
    if choices is not None and value not in choices:
        raise ConfigError(
            f"Invalid value for {name}: {raw!r}, expected one of {', '.join(choices)}"
        )
    return value


@lru_cache(maxsize=8)
def load_settings(workspace_path: Optional[Path] = None) -> Config:
    """Load settings from the workspace config file and environment.

    Settings are cached per workspace for the lifetime of the process.
    Use load_settings.cache_clear() to reload settings.

    Environment overrides:
        MASTERINDEX_LOG_LEVEL: info, verbose or silent (both phases)
        MASTERINDEX_RUNNER: auto, docker or local
        MASTERINDEX_TARGETS: comma-separated explicit target directories
        MASTERINDEX_SEPARATE_COMMITS: true/false

    Args:
        workspace_path: Project root. Defaults to the current directory,
            which is the worktree root when git runs a hook.

    Returns:
        Config object populated from the config file and environment.

    Raises:
        ConfigError: If a value fails validation.
    """
    workspace = Path(workspace_path) if workspace_path is not None else Path.cwd()

    config_file = workspace / CONFIG_FILENAME
    try:
        config_exists = config_file.is_file()
    except PermissionError:
        config_exists = False
    config = _load_config(workspace, config_file if config_exists else None)

    overrides: dict[str, Any] = {}
    log_level = _env_override("MASTERINDEX_LOG_LEVEL", "hook", "log_level")
    if log_level is not None:
        overrides["log_level"] = log_level
        overrides["post_commit_log_level"] = log_level
    runner = _env_override("MASTERINDEX_RUNNER", "hook", "runner")
    if runner is not None:
        overrides["runner_mode"] = runner
    targets = os.getenv("MASTERINDEX_TARGETS")
    if targets:
        overrides["target_directories"] = parse_target_directories(targets)
    separate = _env_override("MASTERINDEX_SEPARATE_COMMITS", "hook", "separate_commits")
    if separate is not None:
        overrides["separate_commits"] = separate

    return replace(config, **overrides) if overrides else config
