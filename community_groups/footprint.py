"""Footprints: permutation-invariant summaries of assignments."""

from typing import Set, Tuple

from .indexer import FeatureKey, MemberIndex
from .shuffler import Assignment

Footprint = Tuple[FeatureKey, ...]


def footprint_of(index: MemberIndex, assignment: Assignment) -> Footprint:
    """Concatenate every group's sorted feature keys, in group order.

    Sorting within a group makes the footprint insensitive to the order of
    members inside the group, which doesn't change the score either.
    """
    keys = index.feature_keys
    footprint = []
    for group_members in assignment:
        footprint.extend(sorted(keys[member_idx] for member_idx in group_members))
    return tuple(footprint)


class FootprintDeduplicator:
    """Remembers footprints already seen during a run."""

    def __init__(self, index: MemberIndex, enabled: bool = True):
        self.index = index
        self.enabled = enabled
        self.seen: Set[Footprint] = set()

    def is_new(self, assignment: Assignment) -> bool:
        """Record the assignment's footprint and tell whether it wasn't seen before."""
        if not self.enabled:
            return True

        footprint = footprint_of(self.index, assignment)
        if footprint in self.seen:
            return False

        self.seen.add(footprint)
        return True

    def __len__(self) -> int:
        return len(self.seen)
