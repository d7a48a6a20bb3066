"""Configuration management for Community Groups."""

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .members import NO_PIN, Group, PinnedTo


@dataclass
class TrackDescriptor:
    """A track as described in the configuration, before member resolution."""

    name: str
    subscribers: List[str] = field(default_factory=list)
    also_include_unsubscribed_members: bool = False
    groups: List[Group] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "subscribers": ",".join(self.subscribers),
            "groups": [group.to_dict() for group in self.groups],
        }
        if self.also_include_unsubscribed_members:
            data["alsoIncludeUnsubscribedMembers"] = True
        return data


def _parse_names(value: Any, key: str) -> List[str]:
    """Parse a comma-separated string or a list of member references."""
    if value is None:
        return []
    if isinstance(value, str):
        names = [name.strip() for name in value.split(",")]
    elif isinstance(value, list):
        names = [str(name).strip() for name in value]
    else:
        raise ValueError(f"{key} must be a comma-separated string or a list")
    return [name for name in names if name]


def _parse_count(value: Any, key: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer")
    return value


def _parse_group(group_data: Any, track_name: str) -> Group:
    if not isinstance(group_data, dict) or not group_data.get("name"):
        raise ValueError(f"Each group of track '{track_name}' must be a dictionary with a name")

    name = str(group_data["name"])
    animator = group_data.get("animator")
    return Group(
        name=name,
        devs_count=_parse_count(group_data.get("devsCount"), f"{track_name}.{name}.devsCount"),
        techleads_count=_parse_count(group_data.get("techleadsCount"), f"{track_name}.{name}.techleadsCount"),
        pin=PinnedTo(str(animator).strip()) if animator else NO_PIN,
    )


def _parse_track(track_data: Any) -> TrackDescriptor:
    if not isinstance(track_data, dict) or not track_data.get("name"):
        raise ValueError("Each track must be a dictionary with a name")

    name = str(track_data["name"])
    groups = track_data.get("groups", [])
    if not isinstance(groups, list):
        raise ValueError(f"groups of track '{name}' must be a list")

    return TrackDescriptor(
        name=name,
        subscribers=_parse_names(track_data.get("subscribers"), f"{name}.subscribers"),
        also_include_unsubscribed_members=bool(track_data.get("alsoIncludeUnsubscribedMembers", False)),
        groups=[_parse_group(group_data, name) for group_data in groups],
    )


class CommunityConfig:
    """Configuration class for the community settings and tracks."""

    def __init__(self):
        """Initialize configuration with default values."""
        self.reference_year: int = date.today().year
        self.xp_weight: float = 1.0
        self.max_same_project_per_group: int = 2
        self.max_members_per_group_with_duplicated_project: int = 2
        self.malus_per_same_path: float = 0.04
        self.history_window: int = 3
        self.absent_members: List[str] = []
        self.tracks: List[TrackDescriptor] = []

    def load_from_file(self, config_path: Path) -> None:
        """Load configuration from a YAML (or JSON) file.

        Args:
            config_path: Path to the configuration file

        Raises:
            FileNotFoundError: If the config file doesn't exist
            yaml.YAMLError: If the file is invalid
            ValueError: If the configuration structure is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        self.load_from_dict(config_data)

    def load_from_dict(self, config_data: Dict[str, Any]) -> None:
        """Load configuration from an already parsed descriptor.

        Raises:
            ValueError: If the configuration structure is invalid
        """
        if 'referenceYearForSeniority' in config_data:
            year = config_data['referenceYearForSeniority']
            if isinstance(year, bool) or not isinstance(year, int):
                raise ValueError("referenceYearForSeniority must be an integer")
            self.reference_year = year

        for key, attribute in (('xpWeight', 'xp_weight'), ('malusPerSamePath', 'malus_per_same_path')):
            if key in config_data:
                value = config_data[key]
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
                    raise ValueError(f"{key} must be a non-negative number")
                setattr(self, attribute, float(value))

        # Ceilings on project diversity within a group
        for key, attribute in (
            ('maxSameProjectPerGroup', 'max_same_project_per_group'),
            ('maxMembersPerGroupWithDuplicatedProject', 'max_members_per_group_with_duplicated_project'),
        ):
            if key in config_data:
                value = config_data[key]
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    raise ValueError(f"{key} must be a non-negative integer")
                setattr(self, attribute, value)

        if 'historyWindow' in config_data:
            window = config_data['historyWindow']
            if isinstance(window, bool) or not isinstance(window, int) or window < 1:
                raise ValueError("historyWindow must be a positive integer")
            self.history_window = window

        if 'absentMembers' in config_data:
            self.absent_members = _parse_names(config_data['absentMembers'], 'absentMembers')

        if 'tracks' in config_data:
            tracks = config_data['tracks']
            if not isinstance(tracks, list):
                raise ValueError("tracks must be a list")
            self.tracks = [_parse_track(track_data) for track_data in tracks]

    def tunables(self) -> Dict[str, Any]:
        """Get the scalar settings, as recorded alongside search results."""
        return {
            'referenceYearForSeniority': self.reference_year,
            'xpWeight': self.xp_weight,
            'maxSameProjectPerGroup': self.max_same_project_per_group,
            'maxMembersPerGroupWithDuplicatedProject': self.max_members_per_group_with_duplicated_project,
            'malusPerSamePath': self.malus_per_same_path,
            'historyWindow': self.history_window,
        }

    def to_dict(self) -> dict:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary representation of the configuration
        """
        config_dict = self.tunables()

        if self.absent_members:
            config_dict['absentMembers'] = ','.join(self.absent_members)

        config_dict['tracks'] = [track.to_dict() for track in self.tracks]

        return config_dict

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to a YAML file.

        Args:
            config_path: Path where to save the configuration
        """
        config_dict = self.to_dict()

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
