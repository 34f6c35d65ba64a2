"""
GitHub Issue Migration Tool

Moves the open issues and comments of configured source repositories into a
target repository, remapping labels and milestones, provisions the target's
label set, and rewrites cross-issue references to the new issue numbers.
Runs are resumable: progress is saved after every write.
"""

from __future__ import annotations

from .cli import main
from .exceptions import ConfigurationError, MigrationError, RemoteAPIError
from .links import LinkRewriter
from .migrator import IssueMigrator
from .state import MigrationState, StateStore
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "IssueMigrator",
    "LinkRewriter",
    "MigrationError",
    "MigrationState",
    "RemoteAPIError",
    "StateStore",
    "main",
    "setup_logging",
]
