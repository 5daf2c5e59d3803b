"""Git hook entry points and the two-phase commit protocol."""

from masterindex.hooks.coordinator import CommitCoordinator, CommitState

__all__ = ["CommitCoordinator", "CommitState"]
