"""Persistent migration state.

The state remembers, per source repository key and source issue number, the
number of the issue created on the target and the comments already copied to
it. It is saved after every single remote write, so an interrupted run loses
at most the one write that was in flight.

The one gap that remains: if the process dies after GitHub created an issue
but before the state recording its number was written, the next run creates
that issue again.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from .exceptions import ConfigurationError, MigrationError

logger: logging.Logger = logging.getLogger(__name__)

STATE_VERSION: Final[int] = 1


@dataclass
class IssueRecord:
    """What has been migrated for one source issue."""

    new_id: int
    comments: dict[int, int] = field(default_factory=dict)
    """Source comment id -> target comment id."""


@dataclass
class MigrationState:
    """All migration progress, keyed by source repo key and source issue number."""

    issues: dict[str, dict[int, IssueRecord]] = field(default_factory=dict)
    links: dict[int, set[int]] = field(default_factory=dict)
    """Target issue number -> target numbers already written into its body by the link rewriter."""

    def get_issue(self, repo_key: str, number: int) -> IssueRecord | None:
        return self.issues.get(repo_key, {}).get(number)

    def record_issue(self, repo_key: str, number: int, new_id: int) -> IssueRecord:
        """Record the target number of a newly created issue."""
        existing = self.get_issue(repo_key, number)
        if existing is not None:
            msg = f"Issue {repo_key}#{number} was already migrated to #{existing.new_id}"
            raise MigrationError(msg)
        record = IssueRecord(new_id=new_id)
        self.issues.setdefault(repo_key, {})[number] = record
        return record

    def record_comment(self, repo_key: str, number: int, comment_id: int, new_comment_id: int) -> None:
        record = self.get_issue(repo_key, number)
        if record is None:
            msg = f"Cannot record comment {comment_id}: issue {repo_key}#{number} has not been migrated"
            raise MigrationError(msg)
        record.comments[comment_id] = new_comment_id

    def translate(self, repo_key: str, number: int) -> int | None:
        """Return the target issue number for a source issue, if it was migrated."""
        record = self.get_issue(repo_key, number)
        return record.new_id if record else None

    def rewritten_links(self, target_number: int) -> set[int]:
        return self.links.get(target_number, set())

    def record_links(self, target_number: int, new_numbers: set[int]) -> None:
        self.links.setdefault(target_number, set()).update(new_numbers)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STATE_VERSION,
            "issues": {
                repo_key: {
                    str(number): {
                        "new_id": record.new_id,
                        "comments": {str(cid): new_cid for cid, new_cid in record.comments.items()},
                    }
                    for number, record in issues.items()
                }
                for repo_key, issues in self.issues.items()
            },
            "_links": {str(number): sorted(rewritten) for number, rewritten in self.links.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationState:
        issues = {
            repo_key: {
                int(number): IssueRecord(
                    new_id=int(entry["new_id"]),
                    comments={int(cid): int(new_cid) for cid, new_cid in entry.get("comments", {}).items()},
                )
                for number, entry in repo_issues.items()
            }
            for repo_key, repo_issues in data.get("issues", {}).items()
        }
        links = {int(number): {int(n) for n in rewritten} for number, rewritten in data.get("_links", {}).items()}
        return cls(issues=issues, links=links)


class StateStore:
    """Loads and saves MigrationState at a fixed path."""

    def __init__(self, path: str | Path, *, dry_run: bool = False, clean: bool = False) -> None:
        self.path: Path = Path(path)
        self.dry_run: bool = dry_run
        self.clean: bool = clean

    def load(self) -> MigrationState:
        """Load the state, or an empty one for a clean run or a missing file.

        Raises:
            ConfigurationError: If the state file exists but cannot be read
        """
        if self.clean:
            logger.info(f"Starting with a clean state (ignoring {self.path})")
            return MigrationState()
        if not self.path.exists():
            logger.debug(f"No state file at {self.path}, starting fresh")
            return MigrationState()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            state = MigrationState.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            msg = f"Cannot read state file {self.path}: {e}"
            raise ConfigurationError(msg) from e

        logger.debug(f"Loaded state for {sum(len(i) for i in state.issues.values())} issues from {self.path}")
        return state

    def save(self, state: MigrationState) -> None:
        """Write the state to disk. Does nothing in dry-run mode."""
        if self.dry_run:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(state.to_dict(), f, indent=1, sort_keys=True)
            Path(temp_path).replace(self.path)
        except OSError as e:
            Path(temp_path).unlink(missing_ok=True)
            msg = f"Cannot write state file {self.path}: {e}"
            raise MigrationError(msg) from e
