from __future__ import annotations

import datetime as dt
import logging
import os
from typing import TYPE_CHECKING, Any, Final, NamedTuple

from github import Auth, Github, GithubException, UnknownObjectException

from .exceptions import ConfigurationError, MigrationError, RemoteAPIError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from github.Repository import Repository

    from .config import RepoRef

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

_TOKEN_ENV_VAR: Final[str] = "GITHUB_TOKEN"  # noqa: S105


class RateLimitInfo(NamedTuple):
    """Rate limit headers of a GitHub API response."""

    limit: str | None
    remaining: str | None
    reset: dt.datetime | None

    @classmethod
    def from_headers(cls, headers: Mapping[str, Any] | None) -> RateLimitInfo:
        lowered = {str(k).lower(): v for k, v in (headers or {}).items()}
        reset_raw = lowered.get("x-ratelimit-reset")
        reset: dt.datetime | None = None
        if reset_raw is not None:
            try:
                reset = dt.datetime.fromtimestamp(int(reset_raw)).astimezone()
            except (TypeError, ValueError, OverflowError):
                reset = None
        return cls(
            limit=lowered.get("x-ratelimit-limit"),
            remaining=lowered.get("x-ratelimit-remaining"),
            reset=reset,
        )

    def describe(self) -> str:
        reset = self.reset.strftime("%Y-%m-%d %H:%M:%S %Z") if self.reset else "unknown"
        return f"Rate limit: {self.limit or 'unknown'}, remaining: {self.remaining or 'unknown'}, next reset: {reset}"


def get_token(token: str | None = None, configured: str | None = None) -> str:
    """Get the GitHub token from the command line, the configuration, or env var GITHUB_TOKEN."""
    resolved = token or configured or os.environ.get(_TOKEN_ENV_VAR)
    if not resolved:
        msg = f"No GitHub token provided (use --token, 'auth.token' in the configuration, or {_TOKEN_ENV_VAR})"
        raise ConfigurationError(msg)
    return resolved


def get_client(token: str) -> Github:
    """Get a GitHub client using the token.

    PyGithub's automatic retry is disabled: a failed request aborts the run and
    the operator re-invokes the tool once the rate limit has reset.
    """
    return Github(auth=Auth.Token(token), retry=None)


def api_error(exc: GithubException, action: str) -> RemoteAPIError:
    """Wrap a GithubException into a RemoteAPIError carrying the rate limit diagnostics."""
    message: object = exc.data
    if isinstance(exc.data, dict) and exc.data.get("message"):
        message = exc.data["message"]
    msg = f"{action} failed ({exc.status}): {message}"
    return RemoteAPIError(msg, status=exc.status, rate_limit=RateLimitInfo.from_headers(exc.headers))


def is_already_exists_error(exc: GithubException) -> bool:
    """Check if a GithubException is a 422 'already_exists' validation error."""
    if exc.status != 422 or not isinstance(exc.data, dict):
        return False
    errors: object = exc.data.get("errors")  # pyright: ignore[reportUnknownVariableType]
    if not isinstance(errors, list):
        return False
    return any(isinstance(e, dict) and e.get("code") == "already_exists" for e in errors)  # pyright: ignore[reportUnknownArgumentType,reportUnknownVariableType]


def get_repo(client: Github, repo_ref: RepoRef) -> Repository:
    """Get a repository, failing with a clear message if it is not accessible."""
    try:
        return client.get_repo(repo_ref.full_name)
    except UnknownObjectException as e:
        msg = f"Repository {repo_ref} not found or not accessible with the given token"
        raise MigrationError(msg) from e
    except GithubException as e:
        raise api_error(e, f"Fetching repository {repo_ref}") from e


def log_authenticated_user(client: Github, expected_user: str | None) -> None:
    """Log who the token belongs to, warning if it is not the configured user."""
    try:
        login = client.get_user().login
    except GithubException as e:
        raise api_error(e, "Validating GitHub token") from e

    if expected_user and expected_user != login:
        logger.warning(f"Token belongs to '{login}', not to configured user '{expected_user}'")
    else:
        logger.info(f"Authenticated to GitHub as {login}")
