"""
Pytest configuration and shared fixtures.

The fixtures build Mock stand-ins for the PyGithub objects the tool reads
(issues, comments, labels, milestones) and a state store in a temporary
directory. Nothing here talks to GitHub.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING, Any
from unittest.mock import Mock

import pytest
from github import GithubException

from github_issue_mover.config import RepoConfig, RepoRef
from github_issue_mover.pacing import WritePacer
from github_issue_mover.state import StateStore

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def _user(login: str) -> Mock:
    user = Mock()
    user.login = login
    user.avatar_url = f"https://avatars.example.com/{login}.png"
    return user


def _named(name: str) -> Mock:
    # Mock(name=...) names the mock itself, so set the attribute afterwards
    obj = Mock()
    obj.name = name
    return obj


@pytest.fixture
def make_issue() -> Callable[..., Mock]:
    """Factory for PyGithub-like source issues."""

    def factory(
        number: int,
        *,
        title: str | None = None,
        body: str | None = "Original body",
        labels: list[str] | None = None,
        milestone: str | None = None,
        assignee: str | None = None,
        comments: list[Mock] | None = None,
        pull_request: bool = False,
        author: str = "alice",
    ) -> Mock:
        issue = Mock()
        issue.number = number
        issue.title = title or f"Issue {number}"
        issue.body = body
        issue.user = _user(author)
        issue.created_at = dt.datetime(2017, 3, 4, 10, 30, tzinfo=dt.UTC)
        issue.html_url = f"https://github.com/acme/core/issues/{number}"
        issue.assignee = _user(assignee) if assignee else None
        if milestone:
            issue.milestone = Mock()
            issue.milestone.title = milestone
        else:
            issue.milestone = None
        issue.labels = [_named(name) for name in labels or []]
        issue.comments = len(comments or [])
        issue.get_comments.return_value = comments or []
        issue.pull_request = Mock() if pull_request else None
        return issue

    return factory


@pytest.fixture
def make_comment() -> Callable[..., Mock]:
    """Factory for PyGithub-like issue comments."""

    def factory(comment_id: int, body: str = "A comment", author: str = "bob") -> Mock:
        comment = Mock()
        comment.id = comment_id
        comment.body = body
        comment.user = _user(author)
        comment.created_at = dt.datetime(2017, 3, 5, 8, 0, tzinfo=dt.UTC)
        comment.html_url = f"https://github.com/acme/core/issues/1#issuecomment-{comment_id}"
        return comment

    return factory


@pytest.fixture
def make_target_issue() -> Callable[..., Mock]:
    """Factory for issues as listed from the target repository."""

    def factory(number: int, body: str, labels: list[str] | None = None) -> Mock:
        issue = Mock()
        issue.number = number
        issue.body = body
        issue.labels = [_named(name) for name in labels or []]
        issue.pull_request = None
        return issue

    return factory


@pytest.fixture
def named() -> Callable[[str], Mock]:
    return _named


@pytest.fixture
def repo_config() -> RepoConfig:
    return RepoConfig(
        key="core",
        ref=RepoRef("acme", "core"),
        label_mapping={"bug": ["kind/bug"], "question": ["kind/question", "triage"]},
    )


@pytest.fixture
def source_repo() -> Mock:
    repo = Mock()
    repo.full_name = "acme/core"
    repo.get_issues.return_value = []
    return repo


@pytest.fixture
def target_repo() -> Mock:
    repo = Mock()
    repo.full_name = "acme/platform"
    repo.get_milestones.return_value = []
    repo.get_issues.return_value = []
    return repo


@pytest.fixture
def state_path(tmp_path: Path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture
def store(state_path: Path) -> StateStore:
    return StateStore(state_path)


@pytest.fixture
def sleep() -> Mock:
    return Mock()


@pytest.fixture
def pacer(sleep: Mock) -> WritePacer:
    return WritePacer(pause=5, sleep=sleep)


def _github_error(status: int, message: str, headers: dict[str, Any] | None = None, **data: Any) -> GithubException:  # noqa: ANN401
    """Build a GithubException the way PyGithub raises it."""
    return GithubException(status, {"message": message, **data}, headers=headers or {})


@pytest.fixture
def make_github_error() -> Callable[..., GithubException]:
    return _github_error
