"""Data models for issues and comments read from the source repository.

These are snapshots of the PyGithub objects taken at the moment they are
listed, so that rendering and mapping never touch the network.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from github.Issue import Issue as GithubIssue
    from github.IssueComment import IssueComment as GithubIssueComment


@dataclass
class SourceIssue:
    """An open issue in the source repository."""

    number: int
    title: str
    body: str
    author: str
    avatar_url: str
    created_at: datetime | str | None
    html_url: str
    assignee: str | None = None
    milestone_title: str | None = None
    labels: list[str] = field(default_factory=list)
    comment_count: int = 0
    is_pull_request: bool = False

    @classmethod
    def from_github(cls, issue: GithubIssue) -> SourceIssue:
        return cls(
            number=issue.number,
            title=issue.title,
            body=issue.body or "",
            author=issue.user.login,
            avatar_url=issue.user.avatar_url,
            created_at=issue.created_at,
            html_url=issue.html_url,
            assignee=issue.assignee.login if issue.assignee else None,
            milestone_title=issue.milestone.title if issue.milestone else None,
            labels=[label.name for label in issue.labels],
            comment_count=issue.comments,
            is_pull_request=issue.pull_request is not None,
        )


@dataclass
class SourceComment:
    """A comment on a source issue."""

    id: int
    body: str
    author: str
    avatar_url: str
    created_at: datetime | str | None
    html_url: str

    @classmethod
    def from_github(cls, comment: GithubIssueComment) -> SourceComment:
        return cls(
            id=comment.id,
            body=comment.body or "",
            author=comment.user.login,
            avatar_url=comment.user.avatar_url,
            created_at=comment.created_at,
            html_url=comment.html_url,
        )
