"""Tests for the two-phase commit protocol against real git repositories."""

from pathlib import Path

import pytest

from masterindex.generation.generator import GeneratorBackend
from masterindex.handoff import HandoffMetadata, HandoffStore
from masterindex.hooks.coordinator import CommitCoordinator, CommitState
from masterindex.repo.commands import CommandRunner


class StubGenerator:
    """Stands in for the external generator by writing artifacts directly."""

    def __init__(self, root: Path, artifacts=(), backend=GeneratorBackend.LOCAL, succeed=True):
        self.root = root
        self.artifacts = list(artifacts)
        self.backend = backend
        self.succeed = succeed
        self.targets = None

    def detect_backend(self):
        return self.backend

    def generate(self, backend, targets):
        self.targets = list(targets)
        if not self.succeed:
            return None
        for relative_path in self.artifacts:
            path = self.root / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text('{"summary": "generated"}')
        return backend


@pytest.fixture
def store(git_repo) -> HandoffStore:
    return HandoffStore(git_repo / ".git" / "llm-readme-metadata.json")


@pytest.fixture
def coordinator_for(git_repo, make_config, store):
    """Factory for a coordinator wired to the test repository."""

    def _make(generator=None, **overrides):
        config = make_config(git_repo, **overrides)
        runner = CommandRunner(git_repo, timeout=30, max_retries=1)
        return CommitCoordinator(
            config,
            runner=runner,
            store=store,
            generator=generator or StubGenerator(git_repo),
            sleep=lambda seconds: None,
        )

    return _make


def committed_files(repo: Path, run_git) -> list[str]:
    output = run_git(repo, "show", "--name-only", "--format=", "HEAD")
    return [line for line in output.splitlines() if line]


class TestPreCommit:
    def test_separate_mode_writes_handoff(self, git_repo, coordinator_for, store):
        generator = StubGenerator(git_repo, ["src/llmreadme.json", "llmreadme.json"])
        coordinator = coordinator_for(generator)

        state = coordinator.run_pre_commit()

        assert state is CommitState.STAGED_FOR_HANDOFF
        assert (git_repo / "master-index" / "src-root.json").exists()
        assert (git_repo / "master-index" / "project-root.json").exists()
        assert not (git_repo / "src" / "llmreadme.json").exists()
        metadata = store.load()
        assert metadata.has_artifacts is True
        assert metadata.commit_message == coordinator.config.commit_message

    def test_separate_mode_leaves_index_unstaged(self, git_repo, coordinator_for, run_git):
        coordinator_for(StubGenerator(git_repo, ["lib/llmreadme.json"])).run_pre_commit()

        assert run_git(git_repo, "diff", "--name-only", "--cached") == ""

    def test_first_run_scans_whole_tree(self, git_repo, coordinator_for):
        generator = StubGenerator(git_repo, ["llmreadme.json"])

        coordinator_for(generator).run_pre_commit()

        assert generator.targets == ["."]

    def test_single_mode_stages_with_primary(self, git_repo, coordinator_for, store, run_git):
        generator = StubGenerator(git_repo, ["lib/llmreadme-enhanced.json"])
        coordinator = coordinator_for(generator, separate_commits=False)

        state = coordinator.run_pre_commit()

        assert state is CommitState.STAGED_WITH_PRIMARY
        assert run_git(git_repo, "diff", "--name-only", "--cached").split() == [
            "master-index/lib.json"
        ]
        assert not store.exists()

    def test_single_mode_with_nothing_generated(self, git_repo, coordinator_for):
        coordinator = coordinator_for(StubGenerator(git_repo), separate_commits=False)

        assert coordinator.run_pre_commit() is CommitState.IDLE

    def test_no_generator_available(self, git_repo, coordinator_for, store):
        generator = StubGenerator(git_repo, ["llmreadme.json"], backend=None)

        assert coordinator_for(generator).run_pre_commit() is CommitState.IDLE
        assert not store.exists()
        assert not (git_repo / "master-index").exists()

    def test_generator_failure(self, git_repo, coordinator_for, store):
        generator = StubGenerator(git_repo, succeed=False)

        assert coordinator_for(generator).run_pre_commit() is CommitState.IDLE
        assert not store.exists()

    def test_stale_handoff_is_removed(self, git_repo, coordinator_for, store):
        store.write(HandoffMetadata.create("stale"))
        generator = StubGenerator(git_repo, backend=None)

        coordinator_for(generator).run_pre_commit()

        assert not store.exists()

    def test_unexpected_error_leaves_clean_state(self, git_repo, coordinator_for, store):
        class ExplodingGenerator(StubGenerator):
            def generate(self, backend, targets):
                raise RuntimeError("boom")

        coordinator = coordinator_for(ExplodingGenerator(git_repo))

        assert coordinator.run_pre_commit() is CommitState.IDLE
        assert not store.exists()

    def test_directory_named_like_artifact_stays_visible(self, git_repo, coordinator_for):
        generator = StubGenerator(git_repo, ["llmreadme/llmreadme.json"])
        coordinator = coordinator_for(generator)

        coordinator.run_pre_commit()

        assert (git_repo / "master-index" / "llmreadme-root.json").exists()
        assert coordinator.index_has_files()

    def test_merge_counters_are_recorded(self, git_repo, coordinator_for):
        generator = StubGenerator(git_repo, ["a/llmreadme.json", "node_modules/x/llmreadme.json"])
        coordinator = coordinator_for(generator)

        coordinator.run_pre_commit()

        assert coordinator.last_merge.counters() == {
            "found": 1,
            "new": 1,
            "updated": 0,
            "skipped": 0,
        }


class TestPostCommit:
    def test_record_is_gone_when_post_commit_hook_reruns(self, prepared, coordinator_for, store):
        """git runs post-commit for the index commit too; it must find no record."""
        hook = prepared / ".git" / "hooks" / "post-commit"
        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text(
            "#!/bin/sh\n"
            f"if [ -f '{store.path}' ]; then touch '{prepared}/record-seen'; fi\n"
        )
        hook.chmod(0o755)

        assert coordinator_for().run_post_commit() is CommitState.COMMITTED
        assert not (prepared / "record-seen").exists()

    @pytest.fixture
    def prepared(self, git_repo, artifact, store):
        artifact(git_repo, "master-index/src-root.json")
        store.write(HandoffMetadata.create("chore: update master index"))
        return git_repo

    def test_commits_only_master_index(self, prepared, coordinator_for, store, run_git):
        (prepared / "unrelated.txt").write_text("leave me alone")

        state = coordinator_for().run_post_commit()

        assert state is CommitState.COMMITTED
        assert committed_files(prepared, run_git) == ["master-index/src-root.json"]
        subject = run_git(prepared, "log", "-1", "--format=%s").strip()
        assert subject == "chore: update master index"
        assert not store.exists()

    def test_commit_bypasses_hooks(self, prepared, coordinator_for, run_git):
        hook = prepared / ".git" / "hooks" / "pre-commit"
        hook.parent.mkdir(parents=True, exist_ok=True)
        hook.write_text("#!/bin/sh\nexit 1\n")
        hook.chmod(0o755)

        assert coordinator_for().run_post_commit() is CommitState.COMMITTED

    def test_absent_metadata_is_noop(self, git_repo, coordinator_for, run_git):
        head = run_git(git_repo, "rev-parse", "HEAD")

        assert coordinator_for().run_post_commit() is CommitState.ABANDONED
        assert run_git(git_repo, "rev-parse", "HEAD") == head

    def test_has_artifacts_false(self, git_repo, artifact, coordinator_for, store):
        artifact(git_repo, "master-index/src-root.json")
        store.write(HandoffMetadata.create("m", has_artifacts=False))

        assert coordinator_for().run_post_commit() is CommitState.ABANDONED
        assert not store.exists()

    def test_empty_index(self, git_repo, coordinator_for, store):
        (git_repo / "master-index").mkdir()
        store.write(HandoffMetadata.create("m"))

        assert coordinator_for().run_post_commit() is CommitState.ABANDONED
        assert not store.exists()

    def test_malformed_metadata(self, git_repo, coordinator_for, store):
        store.path.write_text("{broken")

        assert coordinator_for().run_post_commit() is CommitState.ABANDONED
        assert not store.exists()

    def test_nothing_new_to_stage(self, prepared, coordinator_for, store, run_git):
        run_git(prepared, "add", "master-index")
        run_git(prepared, "commit", "-m", "already committed")

        assert coordinator_for().run_post_commit() is CommitState.ABANDONED
        assert not store.exists()

    def test_git_failure_is_reported_not_raised(self, prepared, coordinator_for, store):
        lock = prepared / ".git" / "index.lock"
        lock.write_text("")

        assert coordinator_for().run_post_commit() is CommitState.ABANDONED
        assert not store.exists()


def test_full_cycle_produces_two_commits(git_repo, coordinator_for, store, run_git):
    generator = StubGenerator(git_repo, ["docs/llmreadme.json"])
    (git_repo / "docs").mkdir()
    (git_repo / "docs" / "guide.md").write_text("guide")
    run_git(git_repo, "add", "docs/guide.md")

    assert coordinator_for(generator).run_pre_commit() is CommitState.STAGED_FOR_HANDOFF
    run_git(git_repo, "commit", "--no-verify", "-m", "Add guide")
    assert committed_files(git_repo, run_git) == ["docs/guide.md"]

    assert coordinator_for().run_post_commit() is CommitState.COMMITTED
    assert committed_files(git_repo, run_git) == ["master-index/docs-root.json"]
    assert not store.exists()
