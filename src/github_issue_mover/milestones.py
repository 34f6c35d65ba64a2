"""
Milestone mapping between source and target repositories by title.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from github.Milestone import Milestone
    from github.Repository import Repository as GithubRepository

logger: logging.Logger = logging.getLogger(__name__)

MilestoneMap = dict[str, "Milestone"]


def build_milestone_map(github_repo: GithubRepository) -> MilestoneMap:
    """Map the titles of all target milestones (open and closed) to the milestones."""
    milestone_map: MilestoneMap = {}
    for milestone in github_repo.get_milestones(state="all"):
        milestone_map[milestone.title] = milestone
    logger.debug(f"Found {len(milestone_map)} milestones in {github_repo.full_name}")
    return milestone_map


def map_milestone(title: str | None, milestone_map: MilestoneMap) -> Milestone | None:
    """Return the target milestone with the same title, or None.

    An unknown title is not an error; the issue is then created without a milestone.
    """
    if not title:
        return None
    milestone = milestone_map.get(title)
    if milestone is None:
        logger.debug(f"No target milestone titled '{title}'")
    return milestone
