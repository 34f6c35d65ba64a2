"""Rewrite cross-issue references in migrated issues to the new issue numbers.

Runs after the migration, over the open issues of the target repository. A
reference is ``#<number>``, optionally prefixed by ``owner/repo`` or ``repo``:

- a bare ``#7`` belongs to the source repository named by the issue's own
  ``module/<key>`` label;
- ``owner/repo#7`` or ``repo#7`` belongs to the source repository whose full
  name, bare name or configured alias is that prefix.

A reference whose repository or number cannot be resolved is left as is.
Resolved references become ``#<new number>``. The numbers written into each
issue are recorded in the state, and bare references to them are never
translated again, so a second pass leaves the body unchanged.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from github import GithubException

from . import github_utils as ghu
from .exceptions import ConfigurationError
from .labels import MODULE_LABEL_PREFIX
from .pacing import WritePacer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from github.Issue import Issue as GithubIssue
    from github.Repository import Repository as GithubRepository

    from .config import RepoConfig
    from .state import MigrationState, StateStore

logger: logging.Logger = logging.getLogger(__name__)

# Not preceded by a word character, '/', '#', '&', '.' or '-'; followed by
# whitespace, punctuation, a closing bracket, Markdown emphasis or code marks,
# a quote, an angle bracket or the end of the text.
DEFAULT_REFERENCE_PATTERN: Final[str] = (
    r"(?<![\w/#&.-])(?P<repo>(?:[\w.-]+/)?[\w.-]+)?#(?P<number>\d+)(?=[\s.,;:!?)\]*`'\"<>]|$)"
)


@dataclass
class LinkRewriteStats:
    """Statistics collected during a link rewrite pass."""

    issues_scanned: int = 0
    issues_updated: int = 0
    references_rewritten: int = 0


def compile_reference_pattern(pattern: str | None = None) -> re.Pattern[str]:
    """Compile a reference pattern, which needs a named group 'number' and may have a group 'repo'."""
    try:
        compiled = re.compile(pattern or DEFAULT_REFERENCE_PATTERN)
    except re.error as e:
        msg = f"Invalid link_pattern '{pattern}': {e}"
        raise ConfigurationError(msg) from e
    if "number" not in compiled.groupindex:
        msg = f"link_pattern '{pattern}' needs a named group 'number'"
        raise ConfigurationError(msg)
    return compiled


def build_repo_lookup(repos: Iterable[RepoConfig]) -> dict[str, str]:
    """Map the names a reference may use for a source repository to its repo key (lowercase)."""
    lookup: dict[str, str] = {}
    for repo in repos:
        for name in (repo.ref.full_name, repo.ref.name, *repo.aliases):
            lookup.setdefault(name.lower(), repo.key)
    return lookup


def module_repo_key(label_names: Iterable[str]) -> str | None:
    """Return the repo key from the first ``module/<key>`` label, if any."""
    for name in label_names:
        if name.startswith(MODULE_LABEL_PREFIX):
            return name[len(MODULE_LABEL_PREFIX) :]
    return None


class LinkRewriter:
    """Rewrites references in target issue bodies using the migration state."""

    def __init__(
        self,
        target_repo: GithubRepository,
        store: StateStore,
        repo_lookup: dict[str, str],
        *,
        dry_run: bool = False,
        pacer: WritePacer | None = None,
        pattern: str | None = None,
        state: MigrationState | None = None,
    ) -> None:
        self.target_repo: GithubRepository = target_repo
        self.store: StateStore = store
        self.repo_lookup: dict[str, str] = {name.lower(): key for name, key in repo_lookup.items()}
        self.dry_run: bool = dry_run
        self.pacer: WritePacer = pacer or WritePacer()
        self.pattern: re.Pattern[str] = compile_reference_pattern(pattern)
        self.state: MigrationState | None = state

    def rewrite_body(
        self,
        body: str,
        default_repo_key: str | None,
        already_rewritten: set[int],
    ) -> tuple[str, list[tuple[str, str]]]:
        """Rewrite the references in one body.

        Returns:
            The new body and the (old, new) reference pairs that were replaced
        """
        assert self.state is not None
        state = self.state
        replacements: list[tuple[str, str]] = []

        def replace(match: re.Match[str]) -> str:
            original = match.group(0)
            repo_token = match.groupdict().get("repo")
            number = int(match.group("number"))

            if repo_token is None:
                if number in already_rewritten:
                    return original
                repo_key = default_repo_key
            else:
                repo_key = self.repo_lookup.get(repo_token.lower())
            if repo_key is None:
                return original

            new_number = state.translate(repo_key, number)
            if new_number is None:
                return original

            replacement = f"#{new_number}"
            replacements.append((original, replacement))
            return replacement

        return self.pattern.sub(replace, body), replacements

    def rewrite_all(self) -> LinkRewriteStats:
        """Rewrite references in every open target issue.

        Raises:
            RemoteAPIError: On the first failed API request
        """
        if self.state is None:
            self.state = self.store.load()
        stats = LinkRewriteStats()
        mode = " (dry run)" if self.dry_run else ""
        print(f"Rewriting issue references in {self.target_repo.full_name}{mode}:")

        try:
            for gh_issue in self.target_repo.get_issues(state="open"):
                if gh_issue.pull_request is not None or not gh_issue.body:
                    continue
                if not self.pattern.search(gh_issue.body):
                    continue
                stats.issues_scanned += 1
                self._rewrite_issue(gh_issue, stats)
        except GithubException as e:
            raise ghu.api_error(e, "Rewriting issue references") from e

        print("Done.")
        return stats

    def _rewrite_issue(self, gh_issue: GithubIssue, stats: LinkRewriteStats) -> None:
        assert self.state is not None
        repo_key = module_repo_key(label.name for label in gh_issue.labels)
        already = self.state.rewritten_links(gh_issue.number)
        new_body, replacements = self.rewrite_body(gh_issue.body, repo_key, already)

        if not replacements:
            logger.debug(f"#{gh_issue.number}: no resolvable references")
            return

        changes = " ".join(f"{old}->{new}" for old, new in replacements)
        if self.dry_run:
            print(f"{gh_issue.number}: {changes} [N]", flush=True)
            return

        try:
            gh_issue.edit(body=new_body)
        except GithubException as e:
            raise ghu.api_error(e, f"Updating references in #{gh_issue.number}") from e

        self.state.record_links(gh_issue.number, {int(new[1:]) for _, new in replacements})
        self.store.save(self.state)
        print(f"{gh_issue.number}: {changes} [+]", flush=True)
        stats.issues_updated += 1
        stats.references_rewritten += len(replacements)
        self.pacer.after_write()
