"""
Label mapping and label provisioning for the target repository.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, NamedTuple

from github import GithubException

from . import github_utils as ghu

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from github.Repository import Repository as GithubRepository

logger: logging.Logger = logging.getLogger(__name__)

MODULE_LABEL_PREFIX = "module/"


def module_label(repo_key: str) -> str:
    """Return the synthetic label tagging every issue migrated from ``repo_key``."""
    return f"{MODULE_LABEL_PREFIX}{repo_key}"


class LabelMap:
    """Maps source label names to target label names.

    Keys are either exact label names or glob patterns with a single ``*``,
    whose match is substituted into ``*`` in the targets. Exact keys win.
    """

    def __init__(self, mapping: Mapping[str, list[str]] | None) -> None:
        self.exact: dict[str, list[str]] = {}
        self.patterns: list[tuple[re.Pattern[str], list[str]]] = []

        for source, targets in (mapping or {}).items():
            if "*" in source:
                regex_pattern = "(.*)".join(re.escape(part) for part in source.split("*", 1))
                self.patterns.append((re.compile(f"^{regex_pattern}$"), list(targets)))
            else:
                self.exact[source] = list(targets)

    def lookup(self, label_name: str) -> list[str] | None:
        """Return the target labels for a source label, or None if it is not mapped."""
        if label_name in self.exact:
            return self.exact[label_name]
        for regex, targets in self.patterns:
            match = regex.match(label_name)
            if match:
                return [target.replace("*", match.group(1)) for target in targets]
        return None


class MappedLabels(NamedTuple):
    """Result of mapping the labels of one issue."""

    labels: list[str]
    """Target label names, module label first, without duplicates."""
    unmapped: list[str]
    """Source labels with no mapping; these are dropped."""


def map_labels(repo_key: str, labels: Iterable[str], label_map: LabelMap) -> MappedLabels:
    """Translate the labels of a source issue into target labels."""
    result: list[str] = [module_label(repo_key)]
    unmapped: list[str] = []

    for name in labels:
        targets = label_map.lookup(name)
        if targets is None:
            unmapped.append(name)
            continue
        result.extend(target for target in targets if target not in result)

    return MappedLabels(labels=result, unmapped=unmapped)


class LabelProvisionResult(NamedTuple):
    """Result of provisioning labels on the target repository."""

    created: list[str]
    updated: list[str]


def provision_labels(
    github_repo: GithubRepository,
    labels: Mapping[str, str],
    *,
    dry_run: bool = False,
) -> LabelProvisionResult:
    """Create the configured labels on the target repository, updating those that exist.

    Args:
        github_repo: The target repository
        labels: Label name -> hex color (without '#')
        dry_run: Only print what would be created

    Returns:
        LabelProvisionResult with the created and updated label names

    Raises:
        RemoteAPIError: If creating a label fails for another reason than
            'already_exists', or if updating an existing label fails
    """
    created: list[str] = []
    updated: list[str] = []

    for name in sorted(labels):
        color = labels[name]
        print(f"{name:<20} [{color}]: ", end="", flush=True)

        if dry_run:
            print("would create")
            continue

        try:
            github_repo.create_label(name=name, color=color)
        except GithubException as e:
            if not ghu.is_already_exists_error(e):
                raise ghu.api_error(e, f"Creating label {name}") from e

            print("updating")
            try:
                github_repo.get_label(name).edit(name=name, color=color)
            except GithubException as update_error:
                raise ghu.api_error(update_error, f"Updating label {name}") from update_error
            updated.append(name)
            logger.debug(f"Updated label {name} to color {color}")
        else:
            print("created")
            created.append(name)
            logger.debug(f"Created label {name} with color {color}")

    logger.info(f"Labels: {len(created)} created, {len(updated)} updated")
    return LabelProvisionResult(created=created, updated=updated)
