"""Per-track member index: role partitions, pins and footprint keys."""

from typing import Dict, List, NamedTuple, Optional

from .members import Member, Role, Track


class FeatureKey(NamedTuple):
    """Compact description of a member, as seen by the footprint.

    Each field is a bucket index (first-appearance order within the track).
    The key is identity-blind: two members sharing seniority, project and role
    get the same key, and are interchangeable as far as footprints go.
    """

    seniority: int
    project: int
    role: int


class MemberIndex:
    """Index built once per track and shared by every search iteration."""

    def __init__(self, track: Track):
        self.track = track
        self.members: List[Member] = list(track.members)
        self.groups = list(track.groups)
        self.position: Dict[str, int] = {
            member.identity: idx for idx, member in enumerate(self.members)
        }

        # Group index -> member index of its animator
        self.pinned: List[Optional[int]] = [
            self.position[group.animator] if group.animator else None
            for group in self.groups
        ]
        pinned = {idx for idx in self.pinned if idx is not None}

        self.dev_indexes: List[int] = [
            idx for idx, member in enumerate(self.members)
            if member.role is Role.DEV and idx not in pinned
        ]
        self.techlead_indexes: List[int] = [
            idx for idx, member in enumerate(self.members)
            if member.role is Role.TECHLEAD and idx not in pinned
        ]

        seniority_buckets = _buckets(member.pro_start for member in self.members)
        project_buckets = _buckets(member.main_project for member in self.members)
        role_buckets = _buckets(member.role for member in self.members)
        self.feature_keys: List[FeatureKey] = [
            FeatureKey(
                seniority_buckets[member.pro_start],
                project_buckets[member.main_project],
                role_buckets[member.role],
            )
            for member in self.members
        ]

    @property
    def single_group(self) -> bool:
        return len(self.groups) == 1

    def is_pinned(self, member_idx: int) -> bool:
        return member_idx in self.pinned


def _buckets(values) -> Dict:
    buckets: Dict = {}
    for value in values:
        buckets.setdefault(value, len(buckets))
    return buckets
