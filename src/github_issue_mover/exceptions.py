"""
Custom exception classes for the GitHub issue migration tool.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .github_utils import RateLimitInfo


class MigrationError(Exception):
    """Base exception for migration errors."""


class ConfigurationError(MigrationError):
    """Raised for invalid or incomplete configuration, before any remote call is made."""


class RemoteAPIError(MigrationError):
    """Raised when the GitHub API answers a request with a non-success status.

    The run is aborted; the operator is expected to wait for the rate limit
    window and re-invoke the tool.
    """

    def __init__(self, message: str, *, status: int | None = None, rate_limit: RateLimitInfo | None = None) -> None:
        super().__init__(message)
        self.status: int | None = status
        self.rate_limit: RateLimitInfo | None = rate_limit
