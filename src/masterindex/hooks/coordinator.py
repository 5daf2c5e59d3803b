"""Two-phase commit protocol for the master index.

Phase A (pre-commit) generates artifacts and moves them into the master
index. With separate commits enabled it leaves a handoff record and does
not touch the user's staged changes; otherwise it stages the index into
the user's commit. Phase B (post-commit) turns the handoff record into a
second commit that contains only the master index.

Neither phase ever fails the git operation: every error is logged with a
remediation hint and the phase ends in a clean state.
"""

import logging
import time
from enum import Enum
from typing import Callable, Optional

from masterindex.config import Config
from masterindex.generation.collector import ArtifactCollector
from masterindex.generation.generator import ExternalGenerator
from masterindex.generation.merge import IndexMerger, MergeResult
from masterindex.generation.naming import is_canonical_name
from masterindex.generation.targets import TargetDirectoryResolver
from masterindex.handoff import HandoffMetadata, HandoffStore
from masterindex.repo.commands import CommandError, CommandRunner
from masterindex.repo.file_filter import is_directory_empty, walk_files
from masterindex.repo.git_operations import (
    GitOperationError,
    commit,
    get_staged_files_under,
    stage_path,
)

logger = logging.getLogger(__name__)


class CommitState(str, Enum):
    """Where a hook invocation stands in the protocol."""

    IDLE = "idle"
    GENERATING = "generating"
    STAGED_FOR_HANDOFF = "staged_for_handoff"
    STAGED_WITH_PRIMARY = "staged_with_primary"
    COMMITTED = "committed"
    ABANDONED = "abandoned"


class CommitCoordinator:
    """Drives one phase of the protocol for a single hook invocation."""

    def __init__(
        self,
        config: Config,
        runner: Optional[CommandRunner] = None,
        store: Optional[HandoffStore] = None,
        generator: Optional[ExternalGenerator] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the coordinator.

        Args:
            config: Configuration for this phase.
            runner: Command runner; built from config if omitted.
            store: Handoff store; located in the git directory if omitted.
            generator: External generator; built from config if omitted.
            sleep: Blocking delay, used for the settle delay after generation.
        """
        self.config = config
        self.runner = runner or CommandRunner(
            config.workspace_path,
            timeout=config.timeout,
            max_retries=config.max_retries,
            verbose=config.verbose,
        )
        self.store = store or HandoffStore.for_repository(
            config.workspace_path, config.paths.metadata_file
        )
        self.generator = generator or ExternalGenerator(config, self.runner)
        self._sleep = sleep
        self.state = CommitState.IDLE
        self.last_merge: Optional[MergeResult] = None

    def _transition(self, state: CommitState) -> CommitState:
        logger.debug(f"State: {self.state.value} -> {state.value}")
        self.state = state
        return state

    @property
    def index_dir(self) -> str:
        return self.config.paths.master_index_dir

    # -------------------------------------------------------------------------
    # Phase A
    # -------------------------------------------------------------------------

    def run_pre_commit(self) -> CommitState:
        """Generate artifacts and prepare them for commit.

        Returns:
            STAGED_FOR_HANDOFF, STAGED_WITH_PRIMARY, or IDLE when generation
            was skipped or failed.
        """
        started = time.monotonic()
        logger.info("Starting LLM readme generation pre-commit hook")

        try:
            self._transition(CommitState.GENERATING)

            if self.store.delete():
                logger.warning("Removed stale handoff metadata left by an interrupted commit")

            backend = self.generator.detect_backend()
            if backend is None:
                logger.warning(
                    "LLM readme generator not available (no docker image and no local executable)"
                )
                logger.info("Skipping LLM readme generation, proceeding with commit")
                return self._transition(CommitState.IDLE)

            targets = TargetDirectoryResolver(self.config, self.runner).resolve()

            used = self.generator.generate(backend, targets)
            if used is None:
                logger.info("Skipping LLM readme generation, proceeding with commit")
                return self._transition(CommitState.IDLE)

            settle = self.config.generator.settle_seconds
            if settle > 0:
                logger.debug(f"Waiting {settle:g}s for file system to stabilize...")
                self._sleep(settle)

            self.last_merge = self.collect_and_merge()

            if self.config.separate_commits:
                state = self._prepare_handoff()
            else:
                state = self._stage_with_primary()

            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.info(f"Pre-commit hook completed in {elapsed_ms}ms using {used.value}")
            return state
        except Exception as e:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.error(f"Pre-commit hook failed after {elapsed_ms}ms: {e}")
            logger.info("Proceeding with commit despite errors")
            self.store.delete()
            return self._transition(CommitState.IDLE)

    def collect_and_merge(self) -> MergeResult:
        """Move every generated artifact into the master index."""
        logger.info("Searching for LLM readme files in project...")
        root = self.config.workspace_path
        paths = ArtifactCollector(root, master_index_dir=self.index_dir).collect()

        if not paths:
            logger.warning("No LLM readme files found")
            logger.info(
                "Make sure the generator has created llmreadme.json or "
                "llmreadme-enhanced.json files"
            )
            return MergeResult()

        logger.info(f"Found {len(paths)} LLM readme files to process")
        return IndexMerger(root, self.config.master_index_path).merge(paths)

    def _prepare_handoff(self) -> CommitState:
        metadata = HandoffMetadata.create(self.config.commit_message, has_artifacts=True)
        self.store.write(metadata)
        logger.info("Two-commit mode: your changes are committed first with their message")
        logger.info(
            f"LLM readme files are ready in {self.index_dir}/; "
            "the post-commit hook will commit them separately"
        )
        return self._transition(CommitState.STAGED_FOR_HANDOFF)

    def _stage_with_primary(self) -> CommitState:
        if is_directory_empty(self.config.master_index_path):
            logger.info(f"{self.index_dir}/ is empty, nothing to stage")
            return self._transition(CommitState.IDLE)

        logger.info(f"Staging {self.index_dir}/ with user changes (single commit mode)...")
        try:
            stage_path(self.runner, self.index_dir, timeout=self.config.git.staging_timeout)
        except GitOperationError as e:
            logger.error(f"Failed to stage {self.index_dir}/: {e.message}")
            logger.info(f"You may need to manually commit the files in {self.index_dir}/")
            return self._transition(CommitState.IDLE)

        logger.info(f"{self.index_dir}/ staged with user changes")
        return self._transition(CommitState.STAGED_WITH_PRIMARY)

    # -------------------------------------------------------------------------
    # Phase B
    # -------------------------------------------------------------------------

    def run_post_commit(self) -> CommitState:
        """Commit the master index left behind by phase A.

        The handoff record is consumed as soon as it is read, so the
        post-commit hook that git runs for our own commit finds nothing to
        do. It is also deleted on every other path, including errors.

        Returns:
            COMMITTED, or ABANDONED when there was nothing to do or the
            commit could not be made.
        """
        started = time.monotonic()
        logger.info("Starting post-commit LLM readme processing")

        try:
            metadata = self.store.load()
            if metadata is None:
                logger.info("No LLM readme processing needed")
                return self._transition(CommitState.ABANDONED)

            # Consumed before committing: our own commit runs this hook again
            self.store.delete()

            if not metadata.has_artifacts:
                logger.info("No LLM readme files flagged for processing")
                return self._transition(CommitState.ABANDONED)

            if not self.index_has_files():
                logger.info("No LLM readme files found to commit")
                return self._transition(CommitState.ABANDONED)

            self._commit_index(metadata)

            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.info(f"Post-commit processing completed successfully in {elapsed_ms}ms")
            logger.info("  1. First commit: user changes with original message")
            logger.info(f"  2. Second commit: LLM readme files in {self.index_dir}/")
            return self._transition(CommitState.COMMITTED)
        except (GitOperationError, CommandError) as e:
            logger.warning(f"Failed to commit LLM readme files: {e.message}")
            logger.info(f"You may need to manually commit files in {self.index_dir}/")
            return self._transition(CommitState.ABANDONED)
        except Exception as e:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.warning(f"Post-commit processing failed after {elapsed_ms}ms: {e}")
            logger.info(f"Check for uncommitted files in {self.index_dir}/")
            return self._transition(CommitState.ABANDONED)
        finally:
            self.store.delete()

    def index_has_files(self) -> bool:
        """Check whether the master index holds any canonical artifact."""
        index_path = self.config.master_index_path
        if is_directory_empty(index_path):
            logger.debug(f"{self.index_dir}/ is missing or empty")
            return False
        files = list(walk_files(index_path, include=is_canonical_name))
        logger.debug(f"Found {len(files)} LLM readme files in {self.index_dir}/")
        return bool(files)

    def _commit_index(self, metadata: HandoffMetadata) -> None:
        logger.info("Staging LLM readme files...")
        stage_path(self.runner, self.index_dir, timeout=self.config.git.staging_timeout)

        staged = get_staged_files_under(self.runner, self.index_dir)
        if not staged:
            raise GitOperationError("No files were successfully staged")
        logger.info(f"Successfully staged {len(staged)} LLM readme files")

        logger.info("Creating LLM readme commit...")
        commit(
            self.runner,
            metadata.commit_message,
            no_verify=True,
            timeout=self.config.git.commit_timeout,
        )
        logger.info("LLM readme files committed successfully")
        logger.info(f'Commit message: "{metadata.commit_message}"')
