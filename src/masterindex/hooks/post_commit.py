"""Entry point for the git post-commit hook (phase B).

Install with a one-line .git/hooks/post-commit script:

    #!/bin/sh
    exec masterindex-post-commit
"""

import logging
from pathlib import Path

from masterindex.config import CONFIG_SCHEMA, ConfigError, load_settings
from masterindex.handoff import HandoffStore
from masterindex.hooks.coordinator import CommitCoordinator
from masterindex.hooks.signals import install_cleanup_handlers
from masterindex.logging_config import configure_logging

logger = logging.getLogger("masterindex.hooks.post_commit")

PHASE_LABEL = "post-commit"


def main() -> None:
    """Run phase B. Always returns normally; the user's commit already exists."""
    try:
        config = load_settings().for_phase("post")
    except ConfigError as e:
        configure_logging("info", PHASE_LABEL)
        logger.error(f"Invalid configuration: {e}")
        # The record must not outlive this cycle even when the config is broken
        default_name = CONFIG_SCHEMA["paths"]["metadata_file"][1]
        HandoffStore.for_repository(Path.cwd(), default_name).delete()
        return

    configure_logging(config.log_level, PHASE_LABEL)

    try:
        coordinator = CommitCoordinator(config)
    except Exception as e:
        logger.error(f"Could not initialize post-commit hook: {e}")
        return

    install_cleanup_handlers(coordinator.store.delete, at_exit=True)
    coordinator.run_post_commit()


if __name__ == "__main__":
    main()
