"""Git hooks that generate LLM readme artifacts and commit them into a flat master index."""

from masterindex.config import Config, ConfigError, load_settings
from masterindex.handoff import HandoffMetadata, HandoffStore, MetadataError

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ConfigError",
    "HandoffMetadata",
    "HandoffStore",
    "MetadataError",
    "load_settings",
]
