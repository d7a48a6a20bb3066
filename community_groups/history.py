"""Recording of the groups members were assigned to, between cycles."""

from typing import Dict, Iterable, List

from .checkpoint import TrackResult
from .members import Member


def assignments_of(results: Iterable[TrackResult]) -> Dict[str, str]:
    """Merge track results into a single member identity -> group name mapping."""
    assignments: Dict[str, str] = {}
    for result in results:
        assignments.update(result.assignment)
    return assignments


def record_history(members: List[Member], assignments: Dict[str, str]) -> List[Member]:
    """Prepend this cycle's group to every member's history.

    Members without a group this cycle get an empty slot, so that the next
    cycles know there is no record for it.
    """
    return [
        member.with_history([assignments.get(member.identity, "")] + member.latest_groups)
        for member in members
    ]
