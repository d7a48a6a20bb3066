"""Validation utilities for Community Groups.

Everything here runs once, before any search starts. Violations are gathered
by category rather than raised one at a time so that the operator gets the
full picture in a single run.
"""

from collections import Counter
from dataclasses import replace
from typing import Dict, List, Optional

from .config import CommunityConfig, TrackDescriptor
from .errors import ConfigurationError
from .members import Group, Member, PinnedTo, Role, Track

ERROR_CATEGORIES = (
    'duplicate_members',
    'unknown_members',
    'track_definitions',
    'track_memberships',
    'animators',
    'headcounts',
)


class MemberDirectory:
    """Resolves member references (trigram or "First Last") to members."""

    def __init__(self, members: List[Member]):
        self.by_identity: Dict[str, Member] = {}
        for member in members:
            self.by_identity.setdefault(member.identity, member)

        name_counts = Counter(member.full_name for member in members)
        self.by_name: Dict[str, Member] = {
            member.full_name: member
            for member in members
            if name_counts[member.full_name] == 1
        }

    def resolve(self, reference: str) -> Optional[Member]:
        return self.by_identity.get(reference) or self.by_name.get(reference)


def validate_population(members: List[Member]) -> List[str]:
    """Check that member identities are unique.

    Returns:
        One message per duplicated identity
    """
    counts = Counter(member.identity for member in members)
    return [
        f"'{identity}' appears {count} times in the members file"
        for identity, count in counts.items()
        if count > 1
    ]


def validate_track_definitions(tracks: List[TrackDescriptor]) -> List[str]:
    """Check the track descriptors on their own, without looking at members."""
    errors = []

    if not tracks:
        errors.append("No track defined")

    absorbing = [track.name for track in tracks if track.also_include_unsubscribed_members]
    if len(absorbing) > 1:
        errors.append(
            f"Only one track may include unsubscribed members, found {len(absorbing)}: {absorbing}"
        )

    track_counts = Counter(track.name for track in tracks)
    for name, count in track_counts.items():
        if count > 1:
            errors.append(f"Track '{name}' is defined {count} times")

    for track in tracks:
        if not track.groups:
            errors.append(f"Track '{track.name}' has no group")
        group_counts = Counter(group.name for group in track.groups)
        for name, count in group_counts.items():
            if count > 1:
                errors.append(f"Track '{track.name}' defines group '{name}' {count} times")

    return errors


def _resolve_headcounts(track: Track, errors: Dict[str, List[str]]) -> List[Group]:
    """Fill in missing single-group headcounts and check them against the population."""
    actual_devs = track.count(Role.DEV)
    actual_techleads = track.count(Role.TECHLEAD)

    groups = track.groups
    if len(groups) == 1:
        group = groups[0]
        groups = [replace(
            group,
            devs_count=actual_devs if group.devs_count is None else group.devs_count,
            techleads_count=actual_techleads if group.techleads_count is None else group.techleads_count,
        )]

    missing = [
        group.name for group in groups
        if group.devs_count is None or group.techleads_count is None
    ]
    if missing:
        errors['headcounts'].append(
            f"Track '{track.name}': groups {missing} must define both devsCount and techleadsCount"
        )
        return groups

    required_devs = sum(group.devs_count for group in groups)
    required_techleads = sum(group.techleads_count for group in groups)
    if required_devs != actual_devs:
        errors['headcounts'].append(
            f"Track '{track.name}': groups require {required_devs} devs, "
            f"but the track has {actual_devs}"
        )
    if required_techleads != actual_techleads:
        errors['headcounts'].append(
            f"Track '{track.name}': groups require {required_techleads} techleads, "
            f"but the track has {actual_techleads}"
        )

    return groups


def _resolve_animators(
    track: Track,
    groups: List[Group],
    directory: MemberDirectory,
    absent: set,
    errors: Dict[str, List[str]],
) -> List[Group]:
    """Resolve animator references to member identities and check their placement."""
    track_identities = {member.identity for member in track.members}
    pinned_groups: Dict[str, List[str]] = {}
    resolved = []

    for group in groups:
        if not isinstance(group.pin, PinnedTo):
            resolved.append(group)
            continue

        animator = directory.resolve(group.pin.member_id)
        if animator is None:
            errors['unknown_members'].append(
                f"Animator '{group.pin.member_id}' of group '{track.name}/{group.name}' is unknown"
            )
            resolved.append(group)
            continue

        if animator.identity in absent:
            errors['animators'].append(
                f"Animator '{animator.identity}' of group '{track.name}/{group.name}' is absent"
            )
        elif animator.identity not in track_identities:
            errors['animators'].append(
                f"Animator '{animator.identity}' of group '{track.name}/{group.name}' "
                f"doesn't belong to track '{track.name}'"
            )

        required = group.devs_count if animator.role is Role.DEV else group.techleads_count
        if required is not None and required < 1:
            errors['animators'].append(
                f"Group '{track.name}/{group.name}' has no {animator.role.value} slot "
                f"for its animator '{animator.identity}'"
            )

        pinned_groups.setdefault(animator.identity, []).append(group.name)
        resolved.append(replace(group, pin=PinnedTo(animator.identity)))

    for identity, group_names in pinned_groups.items():
        if len(group_names) > 1:
            errors['animators'].append(
                f"'{identity}' animates several groups of track '{track.name}': {group_names}"
            )

    return resolved


def build_tracks(config: CommunityConfig, members: List[Member]) -> List[Track]:
    """Resolve the configured tracks against the member population.

    Args:
        config: Loaded community configuration
        members: The whole member population

    Returns:
        Tracks with their members and fully resolved groups, in configuration order

    Raises:
        ConfigurationError: With every violation found, if any
    """
    errors: Dict[str, List[str]] = {category: [] for category in ERROR_CATEGORIES}

    errors['duplicate_members'].extend(validate_population(members))
    errors['track_definitions'].extend(validate_track_definitions(config.tracks))

    directory = MemberDirectory(members)

    absent = set()
    for reference in config.absent_members:
        member = directory.resolve(reference)
        if member is None:
            errors['unknown_members'].append(f"Absent member '{reference}' is unknown")
        else:
            absent.add(member.identity)

    # Explicit subscriptions first, then the absorbing track takes everybody left
    subscriptions: Dict[str, List[str]] = {}
    track_members: Dict[int, List[Member]] = {}
    for track_idx, descriptor in enumerate(config.tracks):
        subscribed = set()
        for reference in descriptor.subscribers:
            member = directory.resolve(reference)
            if member is None:
                errors['unknown_members'].append(
                    f"Subscriber '{reference}' of track '{descriptor.name}' is unknown"
                )
                continue
            if member.identity in absent or member.identity in subscribed:
                continue
            subscribed.add(member.identity)
            subscriptions.setdefault(member.identity, []).append(descriptor.name)
        track_members[track_idx] = [member for member in members if member.identity in subscribed]

    for identity, track_names in subscriptions.items():
        if len(track_names) > 1:
            errors['track_memberships'].append(
                f"'{identity}' is subscribed to several tracks: {track_names}"
            )

    unassigned = [
        member for member in members
        if member.identity not in subscriptions and member.identity not in absent
    ]
    absorbing = [
        track_idx for track_idx, descriptor in enumerate(config.tracks)
        if descriptor.also_include_unsubscribed_members
    ]
    if len(absorbing) == 1:
        track_idx = absorbing[0]
        included = {member.identity for member in track_members[track_idx] + unassigned}
        track_members[track_idx] = [member for member in members if member.identity in included]
    elif unassigned and not absorbing:
        errors['track_memberships'].append(
            f"Members not subscribed to any track: {sorted(member.identity for member in unassigned)}"
        )

    tracks = []
    for track_idx, descriptor in enumerate(config.tracks):
        track = Track(name=descriptor.name, groups=descriptor.groups, members=track_members[track_idx])
        groups = _resolve_headcounts(track, errors)
        groups = _resolve_animators(track, groups, directory, absent, errors)
        tracks.append(Track(name=track.name, groups=groups, members=track.members))

    if any(errors.values()):
        raise ConfigurationError(errors)

    return tracks
