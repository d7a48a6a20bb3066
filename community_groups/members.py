"""Community members, groups and tracks, plus member file I/O."""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd
import yaml

WILDCARD_PROJECT = "*"
HISTORY_SEPARATOR = "|"

CSV_COLUMNS = ["lastName", "firstName", "type", "trigram", "proStart", "mainProject", "latestGroups"]


class Role(str, Enum):
    """Role of a member within the community."""

    DEV = "DEV"
    TECHLEAD = "TECHLEAD"


@dataclass(frozen=True)
class Member:
    """A community member.

    ``latest_groups`` lists the groups the member was assigned to during the
    previous cycles, most recent first. An empty string means that the member
    wasn't assigned to any group during that cycle.
    """

    last_name: str
    first_name: str
    role: Role
    pro_start: int
    main_project: str
    latest_groups: List[str] = field(default_factory=list)
    trigram: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def identity(self) -> str:
        """Unique key of the member: the trigram when there is one, else the full name."""
        return self.trigram or self.full_name

    @property
    def has_wildcard_project(self) -> bool:
        return self.main_project == WILDCARD_PROJECT

    def experience(self, reference_year: int) -> int:
        return reference_year - self.pro_start

    def with_history(self, latest_groups: List[str]) -> "Member":
        return replace(self, latest_groups=list(latest_groups))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "lastName": self.last_name,
            "firstName": self.first_name,
            "type": self.role.value,
            "proStart": self.pro_start,
            "mainProject": self.main_project,
            "latestGroups": list(self.latest_groups),
        }
        if self.trigram:
            data["trigram"] = self.trigram
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Member":
        """Build a member from its descriptor.

        Raises:
            ValueError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Member descriptor must be a dictionary, got: {data!r}")

        missing = [key for key in ("type", "proStart", "mainProject") if key not in data]
        if missing:
            raise ValueError(f"Member descriptor {data!r} is missing {missing}")

        try:
            role = Role(str(data["type"]).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown member type {data['type']!r} (expected DEV or TECHLEAD)")

        try:
            pro_start = int(data["proStart"])
        except (TypeError, ValueError):
            raise ValueError(f"proStart must be a year, got {data['proStart']!r}")

        latest_groups = data.get("latestGroups") or []
        if isinstance(latest_groups, str):
            latest_groups = latest_groups.split(HISTORY_SEPARATOR) if latest_groups else []
        if not isinstance(latest_groups, list):
            raise ValueError("latestGroups must be a list of group names")

        trigram = data.get("trigram")
        member = cls(
            last_name=str(data.get("lastName") or "").strip(),
            first_name=str(data.get("firstName") or "").strip(),
            role=role,
            pro_start=pro_start,
            main_project=str(data["mainProject"]).strip(),
            latest_groups=[str(group) for group in latest_groups],
            trigram=str(trigram).strip() if trigram else None,
        )
        if not member.identity:
            raise ValueError(f"Member descriptor {data!r} has neither a trigram nor a name")
        return member


@dataclass(frozen=True)
class NoPin:
    """The group has no animator."""


@dataclass(frozen=True)
class PinnedTo:
    """The group is animated by the given member, who must be placed in it."""

    member_id: str


Pin = Union[NoPin, PinnedTo]
NO_PIN = NoPin()


@dataclass(frozen=True)
class Group:
    """A group to fill within a track.

    Headcounts are ``None`` until resolved; single-group tracks may leave them
    out and get them from the track population.
    """

    name: str
    devs_count: Optional[int] = None
    techleads_count: Optional[int] = None
    pin: Pin = NO_PIN

    @property
    def animator(self) -> Optional[str]:
        return self.pin.member_id if isinstance(self.pin, PinnedTo) else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.devs_count is not None:
            data["devsCount"] = self.devs_count
        if self.techleads_count is not None:
            data["techleadsCount"] = self.techleads_count
        if self.animator:
            data["animator"] = self.animator
        return data


@dataclass(frozen=True)
class Track:
    """A sub-population of the community with its own groups."""

    name: str
    groups: List[Group]
    members: List[Member]

    def count(self, role: Role) -> int:
        return sum(1 for member in self.members if member.role is role)


def load_members(members_path: Path) -> List[Member]:
    """Load community members from a JSON, YAML or CSV file.

    CSV files use the descriptor keys as columns, with ``latestGroups`` holding
    pipe-separated group names (most recent first).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file content is invalid
    """
    if not members_path.exists():
        raise FileNotFoundError(f"Members file not found: {members_path}")

    if members_path.suffix.lower() == ".csv":
        # Empty history slots are meaningful: don't let pandas turn them into NaN
        df = pd.read_csv(members_path, dtype=str, keep_default_na=False)
        records = df.to_dict(orient="records")
    else:
        with open(members_path, "r", encoding="utf-8") as f:
            records = yaml.safe_load(f)
        if isinstance(records, dict):
            records = records.get("members")

    if not isinstance(records, list):
        raise ValueError("Members file must contain a list of members")

    return [Member.from_dict(record) for record in records]


def save_members(members: List[Member], members_path: Path) -> None:
    """Save members back in the format matching the file extension."""
    records = [member.to_dict() for member in members]

    if members_path.suffix.lower() == ".csv":
        rows = [
            {**record, "trigram": record.get("trigram", ""),
             "latestGroups": HISTORY_SEPARATOR.join(record["latestGroups"])}
            for record in records
        ]
        pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(members_path, index=False)
    elif members_path.suffix.lower() in (".yaml", ".yml"):
        with open(members_path, "w", encoding="utf-8") as f:
            yaml.dump(records, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    else:
        with open(members_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
            f.write("\n")
