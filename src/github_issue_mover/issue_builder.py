"""Build target issue and comment bodies carrying the original author and date."""

from __future__ import annotations

import datetime as dt
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SourceComment, SourceIssue

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_HEADER_SEPARATOR = "\n\n"


def format_date(created_at: dt.datetime | str | None) -> str:
    """Format a creation timestamp as YYYY-MM-DD.

    Args:
        created_at: datetime, or ISO 8601 string such as "2024-01-15T10:30:45Z"

    Returns:
        The date part, or the original string if no date can be found in it.
    """
    if created_at is None:
        return ""
    if isinstance(created_at, dt.datetime):
        return created_at.strftime("%Y-%m-%d")
    match = _DATE_PATTERN.search(created_at)
    return match.group(0) if match else created_at


def _avatar(avatar_url: str, author: str) -> str:
    return f'<img src="{avatar_url}" valign="middle" width="22px"></img> @{author}'


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|")


def render_issue_body(issue: SourceIssue) -> str:
    """Render the target issue body: an attribution table row, a blank line, the original body."""
    cells = [
        _avatar(issue.avatar_url, issue.author),
        f"[{format_date(issue.created_at)}]({issue.html_url})",
    ]
    if issue.labels:
        cells.append(_escape_cell(", ".join(issue.labels)))

    header = "| " + " | ".join(cells) + " |\n"
    header += "|" + "-|" * len(cells)
    return header + _HEADER_SEPARATOR + (issue.body or "")


def render_comment_body(comment: SourceComment) -> str:
    """Render a target comment body: an attribution table row, a blank line, the original comment."""
    header = f"| {_avatar(comment.avatar_url, comment.author)} | [{format_date(comment.created_at)}]({comment.html_url}) |\n"
    header += "|-|-|"
    return header + _HEADER_SEPARATOR + (comment.body or "")


def split_rendered_body(text: str) -> tuple[str, str]:
    """Split a rendered body into its attribution header and the original text."""
    header, _, body = text.partition(_HEADER_SEPARATOR)
    return header, body
