"""Fixed names and command-line conventions.

Re-exports all constants for convenient importing:
    from masterindex.constants import ARTIFACT_FILENAMES, WHOLE_TREE
"""

from masterindex.constants.files import *  # noqa: F403
from masterindex.constants.generation import *  # noqa: F403
