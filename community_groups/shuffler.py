"""Random generation of headcount-correct assignments."""

import random
from typing import Dict, List, Optional

from .indexer import MemberIndex
from .members import Role

# One list of member indexes per group, in group order
Assignment = List[List[int]]


class ConstrainedShuffler:
    """Produces random assignments honouring group headcounts and animators.

    Dev and techlead indexes are shuffled independently, then dealt to the
    groups in order: animator first, then techleads, then devs.
    """

    def __init__(self, index: MemberIndex, seed: Optional[int] = None):
        self.index = index
        self.random = random.Random(seed)

        # Slots left to fill once the animator is placed: (techleads, devs)
        self._slots = []
        for group, pinned in zip(index.groups, index.pinned):
            techleads, devs = group.techleads_count, group.devs_count
            if pinned is not None:
                if index.members[pinned].role is Role.TECHLEAD:
                    techleads -= 1
                else:
                    devs -= 1
            self._slots.append((techleads, devs))

    # Called once per search iteration: keep it lean
    def shuffle(self) -> Assignment:
        devs = self.index.dev_indexes[:]
        techleads = self.index.techlead_indexes[:]
        self.random.shuffle(devs)
        self.random.shuffle(techleads)

        assignment = []
        dev_pos = techlead_pos = 0
        for pinned, (techlead_slots, dev_slots) in zip(self.index.pinned, self._slots):
            group_members = [] if pinned is None else [pinned]
            group_members.extend(techleads[techlead_pos:techlead_pos + techlead_slots])
            group_members.extend(devs[dev_pos:dev_pos + dev_slots])
            techlead_pos += techlead_slots
            dev_pos += dev_slots
            assignment.append(group_members)

        return assignment


def assignment_from_mapping(index: MemberIndex, mapping: Dict[str, str]) -> Assignment:
    """Rebuild an assignment from a member identity -> group name mapping.

    Raises:
        ValueError: If the mapping doesn't cover the track exactly, refers to
            unknown groups, breaks headcounts or misplaces an animator
    """
    group_positions = {group.name: idx for idx, group in enumerate(index.groups)}

    unknown_groups = sorted(set(mapping.values()) - set(group_positions))
    if unknown_groups:
        raise ValueError(f"unknown groups {unknown_groups}")

    missing = sorted(set(index.position) - set(mapping))
    extra = sorted(set(mapping) - set(index.position))
    if missing or extra:
        raise ValueError(f"members missing: {missing}, unexpected members: {extra}")

    assignment: Assignment = [[] if pinned is None else [pinned] for pinned in index.pinned]
    for role in (Role.TECHLEAD, Role.DEV):
        for member_idx, member in enumerate(index.members):
            if member.role is not role or index.is_pinned(member_idx):
                continue
            assignment[group_positions[mapping[member.identity]]].append(member_idx)

    for group_idx, (group, pinned) in enumerate(zip(index.groups, index.pinned)):
        if pinned is not None and mapping[index.members[pinned].identity] != group.name:
            raise ValueError(
                f"animator '{index.members[pinned].identity}' is not in group '{group.name}'"
            )
        roles = [index.members[member_idx].role for member_idx in assignment[group_idx]]
        devs, techleads = roles.count(Role.DEV), roles.count(Role.TECHLEAD)
        if devs != group.devs_count or techleads != group.techleads_count:
            raise ValueError(
                f"group '{group.name}' has {devs} devs and {techleads} techleads, "
                f"expected {group.devs_count} and {group.techleads_count}"
            )

    return assignment
