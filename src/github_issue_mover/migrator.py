"""Migration driver: copies the open issues of one source repository to the target.

Each source issue moves through these states:

    NEW               no state entry
    CREATING          create request in flight
    CREATED           state entry with new_id
    COMMENTS_PENDING  some source comments not yet in the entry
    DONE              every source comment recorded

State is saved after every single write, so re-invoking the tool after an
abort (rate limit, network, Ctrl-C) resumes where the previous run stopped.
Issues are listed by update time ascending, so issues updated between runs
are appended at the end of the listing.

Progress is printed one line per issue::

    12: [C] ..+ : 112

``[C]`` already migrated, ``[+]`` created, ``[N]`` would be created (dry run);
``.`` comment already migrated, ``+`` created, ``-`` would be created;
``(label)`` unmapped label, ``{title}`` unmapped milestone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from github import GithubException

from . import github_utils as ghu
from .issue_builder import render_comment_body, render_issue_body
from .labels import LabelMap, map_labels
from .milestones import MilestoneMap, build_milestone_map, map_milestone
from .models import SourceComment, SourceIssue
from .pacing import WritePacer

if TYPE_CHECKING:
    from github.Issue import Issue as GithubIssue
    from github.Repository import Repository as GithubRepository

    from .config import RepoConfig
    from .state import IssueRecord, MigrationState, StateStore

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)


@dataclass
class MigrationStats:
    """Statistics collected during a migration run."""

    issues_created: int = 0
    issues_cached: int = 0
    issues_dry_run: int = 0
    comments_created: int = 0
    comments_cached: int = 0
    comments_dry_run: int = 0
    pull_requests_skipped: int = 0
    unmapped_labels: set[str] = field(default_factory=set)
    unmapped_milestones: set[str] = field(default_factory=set)


class IssueMigrator:
    """Migrates the open issues and comments of one source repository."""

    def __init__(
        self,
        source_repo: GithubRepository,
        target_repo: GithubRepository,
        repo_config: RepoConfig,
        store: StateStore,
        *,
        dry_run: bool = False,
        oneshot: bool = False,
        pacer: WritePacer | None = None,
        state: MigrationState | None = None,
    ) -> None:
        self.source_repo: GithubRepository = source_repo
        self.target_repo: GithubRepository = target_repo
        self.repo_key: str = repo_config.key
        self.label_map: LabelMap = LabelMap(repo_config.label_mapping)
        self.store: StateStore = store
        self.dry_run: bool = dry_run
        self.oneshot: bool = oneshot
        self.pacer: WritePacer = pacer or WritePacer()

        self.state: MigrationState | None = state
        self.milestone_map: MilestoneMap = {}
        self.stats: MigrationStats = MigrationStats()

    def migrate(self) -> MigrationStats:
        """Run the migration until all open issues are processed.

        Raises:
            RemoteAPIError: On the first failed API request
            ConfigurationError: If the state file cannot be read
        """
        if self.state is None:
            self.state = self.store.load()
        self.stats = MigrationStats()
        mode = " (dry run)" if self.dry_run else ""
        print(f"Migrating {self.repo_key} ({self.source_repo.full_name} -> {self.target_repo.full_name}){mode}:")

        try:
            self.milestone_map = build_milestone_map(self.target_repo)
            issues = self.source_repo.get_issues(state="open", sort="updated", direction="asc")
            for gh_issue in issues:
                if gh_issue.pull_request is not None:
                    self.stats.pull_requests_skipped += 1
                    continue

                self._migrate_issue(gh_issue)
                if self.oneshot:
                    logger.info("Oneshot mode: stopping after the first issue")
                    break
        except GithubException as e:
            raise ghu.api_error(e, f"Migrating {self.repo_key}") from e

        print("Done.")
        return self.stats

    def _migrate_issue(self, gh_issue: GithubIssue) -> None:
        assert self.state is not None
        issue = SourceIssue.from_github(gh_issue)
        print(f"{issue.number}: ", end="", flush=True)

        record = self.state.get_issue(self.repo_key, issue.number)
        if record is not None:
            print("[C] ", end="", flush=True)
            self.stats.issues_cached += 1
        elif self.dry_run:
            self._issue_payload(issue)
            print("[N] ", end="", flush=True)
            self.stats.issues_dry_run += 1
        else:
            record = self._create_issue(issue)

        if issue.comment_count > 0:
            self._migrate_comments(gh_issue, issue, record)

        print(f" : {record.new_id if record else '-'}", flush=True)

    def _issue_payload(self, issue: SourceIssue) -> dict[str, Any]:
        """Build create_issue arguments, printing mapping misses inline."""
        mapped = map_labels(self.repo_key, issue.labels, self.label_map)
        for name in mapped.unmapped:
            print(f"({name})", end="")
        self.stats.unmapped_labels.update(mapped.unmapped)

        payload: dict[str, Any] = {
            "title": issue.title,
            "body": render_issue_body(issue),
            "labels": mapped.labels,
        }

        milestone = map_milestone(issue.milestone_title, self.milestone_map)
        if milestone is not None:
            payload["milestone"] = milestone
        elif issue.milestone_title:
            print(f"{{{issue.milestone_title}}}", end="")
            self.stats.unmapped_milestones.add(issue.milestone_title)

        if issue.assignee:
            payload["assignee"] = issue.assignee
        return payload

    def _create_issue(self, issue: SourceIssue) -> IssueRecord:
        assert self.state is not None
        payload = self._issue_payload(issue)
        try:
            new_issue = self.target_repo.create_issue(**payload)
        except GithubException as e:
            print()
            raise ghu.api_error(e, f"Creating issue for {self.repo_key}#{issue.number}") from e

        record = self.state.record_issue(self.repo_key, issue.number, new_issue.number)
        self.store.save(self.state)
        print("[+] ", end="", flush=True)
        logger.debug(f"Created #{new_issue.number} from {self.repo_key}#{issue.number}")
        self.stats.issues_created += 1
        self.pacer.after_write()
        return record

    def _migrate_comments(self, gh_issue: GithubIssue, issue: SourceIssue, record: IssueRecord | None) -> None:
        assert self.state is not None
        target_issue: GithubIssue | None = None

        for gh_comment in gh_issue.get_comments():
            if record is not None and gh_comment.id in record.comments:
                print(".", end="", flush=True)
                self.stats.comments_cached += 1
                continue

            if self.dry_run or record is None:
                print("-", end="", flush=True)
                self.stats.comments_dry_run += 1
                continue

            if target_issue is None:
                target_issue = self.target_repo.get_issue(record.new_id)

            comment = SourceComment.from_github(gh_comment)
            try:
                new_comment = target_issue.create_comment(render_comment_body(comment))
            except GithubException as e:
                print()
                raise ghu.api_error(e, f"Creating comment {comment.id} on #{record.new_id}") from e

            self.state.record_comment(self.repo_key, issue.number, comment.id, new_comment.id)
            self.store.save(self.state)
            print("+", end="", flush=True)
            self.stats.comments_created += 1
            self.pacer.after_write()
