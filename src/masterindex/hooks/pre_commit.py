"""Entry point for the git pre-commit hook (phase A).

Install with a one-line .git/hooks/pre-commit script:

    #!/bin/sh
    exec masterindex-pre-commit
"""

import logging

from masterindex.config import ConfigError, load_settings
from masterindex.hooks.coordinator import CommitCoordinator, CommitState
from masterindex.hooks.signals import install_cleanup_handlers
from masterindex.logging_config import configure_logging

logger = logging.getLogger("masterindex.hooks.pre_commit")

PHASE_LABEL = "pre-commit"


def main() -> None:
    """Run phase A. Always returns normally so the commit proceeds."""
    try:
        config = load_settings().for_phase("pre")
    except ConfigError as e:
        configure_logging("info", PHASE_LABEL)
        logger.error(f"Invalid configuration, skipping LLM readme generation: {e}")
        return

    configure_logging(config.log_level, PHASE_LABEL)

    try:
        coordinator = CommitCoordinator(config)
    except Exception as e:
        logger.error(f"Could not initialize pre-commit hook: {e}")
        logger.info("Proceeding with commit despite errors")
        return

    install_cleanup_handlers(coordinator.store.delete)
    state = coordinator.run_pre_commit()

    if state is CommitState.STAGED_FOR_HANDOFF:
        logger.info("Two-commit flow ready:")
        logger.info(f"  LLM readme files moved to {config.paths.master_index_dir}/")
        logger.info("  Your changes will be committed first")
        logger.info("  Then the post-commit hook will create a separate master index commit")
    elif state is CommitState.STAGED_WITH_PRIMARY:
        logger.info(
            f"All LLM readme files have been moved to {config.paths.master_index_dir}/ "
            "and staged for commit"
        )


if __name__ == "__main__":
    main()
