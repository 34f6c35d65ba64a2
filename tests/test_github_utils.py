"""
Tests for GitHub utilities module.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Callable
from unittest.mock import Mock, patch

import pytest
from github import GithubException, UnknownObjectException

from github_issue_mover import ConfigurationError, MigrationError, RemoteAPIError
from github_issue_mover import github_utils as ghu
from github_issue_mover.config import RepoRef


@pytest.mark.unit
class TestRateLimitInfo:
    def test_from_headers(self) -> None:
        info = ghu.RateLimitInfo.from_headers(
            {"X-RateLimit-Limit": "5000", "X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"}
        )

        assert info.limit == "5000"
        assert info.remaining == "0"
        assert info.reset == dt.datetime.fromtimestamp(1700000000).astimezone()

    def test_missing_headers(self) -> None:
        info = ghu.RateLimitInfo.from_headers(None)

        assert info == ghu.RateLimitInfo(None, None, None)
        assert info.describe() == "Rate limit: unknown, remaining: unknown, next reset: unknown"

    def test_garbled_reset(self) -> None:
        assert ghu.RateLimitInfo.from_headers({"x-ratelimit-reset": "soon"}).reset is None

    def test_describe(self) -> None:
        reset = dt.datetime(2024, 5, 1, 12, 0, 0, tzinfo=dt.UTC)
        info = ghu.RateLimitInfo("5000", "12", reset)

        assert info.describe() == "Rate limit: 5000, remaining: 12, next reset: 2024-05-01 12:00:00 UTC"


@pytest.mark.unit
class TestGetToken:
    def test_command_line_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert ghu.get_token("cli-token", "config-token") == "cli-token"

    def test_configured_before_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert ghu.get_token(None, "config-token") == "config-token"

    def test_env_var_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        assert ghu.get_token() == "env-token"

    def test_missing_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with pytest.raises(ConfigurationError, match="No GitHub token provided"):
            ghu.get_token()


@pytest.mark.unit
class TestGetClient:
    def test_client_without_retry(self) -> None:
        with (
            patch("github_issue_mover.github_utils.Github") as mock_github,
            patch("github_issue_mover.github_utils.Auth.Token") as mock_token,
        ):
            client = ghu.get_client("secret")

        mock_token.assert_called_once_with("secret")
        mock_github.assert_called_once_with(auth=mock_token.return_value, retry=None)
        assert client is mock_github.return_value


@pytest.mark.unit
class TestApiError:
    def test_wraps_status_message_and_rate_limit(self, make_github_error: Callable[..., GithubException]) -> None:
        exc = make_github_error(
            403,
            "You have exceeded a secondary rate limit",
            headers={"x-ratelimit-limit": "5000", "x-ratelimit-remaining": "4990"},
        )

        error = ghu.api_error(exc, "Creating issue for core#10")

        assert isinstance(error, RemoteAPIError)
        assert str(error) == "Creating issue for core#10 failed (403): You have exceeded a secondary rate limit"
        assert error.status == 403
        assert error.rate_limit is not None
        assert error.rate_limit.remaining == "4990"

    def test_non_dict_data(self) -> None:
        error = ghu.api_error(GithubException(502, "Bad Gateway", None), "Listing issues")
        assert str(error) == "Listing issues failed (502): Bad Gateway"


@pytest.mark.unit
class TestIsAlreadyExistsError:
    def test_already_exists(self, make_github_error: Callable[..., GithubException]) -> None:
        exc = make_github_error(422, "Validation Failed", errors=[{"resource": "Label", "code": "already_exists"}])
        assert ghu.is_already_exists_error(exc)

    def test_other_validation_error(self, make_github_error: Callable[..., GithubException]) -> None:
        exc = make_github_error(422, "Validation Failed", errors=[{"resource": "Label", "code": "invalid"}])
        assert not ghu.is_already_exists_error(exc)

    def test_other_status(self, make_github_error: Callable[..., GithubException]) -> None:
        exc = make_github_error(403, "Forbidden", errors=[{"code": "already_exists"}])
        assert not ghu.is_already_exists_error(exc)


@pytest.mark.unit
class TestGetRepo:
    def test_found(self) -> None:
        client = Mock()
        assert ghu.get_repo(client, RepoRef("acme", "core")) is client.get_repo.return_value
        client.get_repo.assert_called_once_with("acme/core")

    def test_not_found(self) -> None:
        client = Mock()
        client.get_repo.side_effect = UnknownObjectException(404, {"message": "Not Found"}, None)

        with pytest.raises(MigrationError, match="Repository acme/core not found"):
            ghu.get_repo(client, RepoRef("acme", "core"))

    def test_other_error(self, make_github_error: Callable[..., GithubException]) -> None:
        client = Mock()
        client.get_repo.side_effect = make_github_error(500, "Server Error")

        with pytest.raises(RemoteAPIError, match=r"Fetching repository acme/core failed \(500\)"):
            ghu.get_repo(client, RepoRef("acme", "core"))


@pytest.mark.unit
class TestLogAuthenticatedUser:
    def test_matching_user(self, caplog: pytest.LogCaptureFixture) -> None:
        client = Mock()
        client.get_user.return_value.login = "alice"

        with caplog.at_level("INFO"):
            ghu.log_authenticated_user(client, "alice")

        assert "Authenticated to GitHub as alice" in caplog.text

    def test_different_user_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        client = Mock()
        client.get_user.return_value.login = "bot"

        ghu.log_authenticated_user(client, "alice")

        assert "not to configured user 'alice'" in caplog.text

    def test_invalid_token(self, make_github_error: Callable[..., GithubException]) -> None:
        client = Mock()
        client.get_user.side_effect = make_github_error(401, "Bad credentials")

        with pytest.raises(RemoteAPIError, match="Validating GitHub token failed"):
            ghu.log_authenticated_user(client, None)
