"""Hard constraints on project diversity within groups."""

from collections import Counter
from typing import List, Tuple

from .indexer import MemberIndex
from .members import Member
from .shuffler import Assignment


def group_projects(members: List[Member], group_members: List[int]) -> List[str]:
    """Get the projects of a group, wildcard projects turned into singletons."""
    return [
        f"project {position}" if members[member_idx].has_wildcard_project
        else members[member_idx].main_project
        for position, member_idx in enumerate(group_members)
    ]


def project_stats(projects: List[str]) -> Tuple[int, int]:
    """Compute (largest same-project count, members whose project appears more than once)."""
    if not projects:
        return 0, 0
    counts = Counter(projects)
    return max(counts.values()), sum(count for count in counts.values() if count > 1)


def matches_constraints(
    index: MemberIndex,
    assignment: Assignment,
    max_same_project_per_group: int,
    max_members_per_group_with_duplicated_project: int,
) -> bool:
    """Check an assignment against the per-group project ceilings.

    A track with a single group offers no choice, so it always matches.
    """
    if index.single_group:
        return True

    for group_members in assignment:
        max_same_project, duplicated_members = project_stats(
            group_projects(index.members, group_members)
        )
        if max_same_project > max_same_project_per_group:
            return False
        if duplicated_members > max_members_per_group_with_duplicated_project:
            return False

    return True
