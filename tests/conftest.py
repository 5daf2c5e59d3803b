"""Shared pytest fixtures for all tests."""

import subprocess
from dataclasses import replace
from pathlib import Path

import pytest

from masterindex.config import Config, load_settings


def git(repo_path: Path, *args: str) -> str:
    """Run a git command in a test repository and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=repo_path,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Isolate tests from cached settings and from MASTERINDEX_* variables."""
    for name in (
        "MASTERINDEX_LOG_LEVEL",
        "MASTERINDEX_RUNNER",
        "MASTERINDEX_TARGETS",
        "MASTERINDEX_SEPARATE_COMMITS",
    ):
        monkeypatch.delenv(name, raising=False)
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def git_repo(tmp_path):
    """Create a git repository with one initial commit."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    git(repo_path, "init")
    git(repo_path, "config", "user.email", "test@test.com")
    git(repo_path, "config", "user.name", "Test")
    git(repo_path, "config", "commit.gpgsign", "false")
    (repo_path / "README.md").write_text("# Test Repo")
    git(repo_path, "add", ".")
    git(repo_path, "commit", "-m", "Initial commit")
    return repo_path


@pytest.fixture
def make_config():
    """Build a Config for a workspace with fast, test-friendly defaults."""

    def _make(workspace: Path, **overrides) -> Config:
        config = Config(workspace_path=workspace, timeout=30, max_retries=1)
        config = replace(config, generator=replace(config.generator, settle_seconds=0.0))
        return replace(config, **overrides) if overrides else config

    return _make


def write_artifact(
    root: Path, relative_path: str, content: str = '{"summary": "generated"}'
) -> Path:
    """Create an artifact file (and its parents) below root."""
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


@pytest.fixture
def run_git():
    """The git() helper, for tests outside this module."""
    return git


@pytest.fixture
def artifact():
    """The write_artifact() helper, for tests outside this module."""
    return write_artifact
