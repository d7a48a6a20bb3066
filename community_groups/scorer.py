"""Scoring of assignments: experience balance and duplicated paths."""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .constraints import group_projects, project_stats
from .indexer import MemberIndex
from .members import Member, Role
from .shuffler import Assignment

PATH_SEPARATOR = "|"


@dataclass
class GroupScore:
    name: str
    group_xps: List[int]
    group_total_xp: int
    group_average_xp: float
    projects: List[str]
    same_projects_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "groupXPs": list(self.group_xps),
            "groupTotalXP": self.group_total_xp,
            "groupAverageXP": self.group_average_xp,
            "projects": list(self.projects),
            "sameProjectsCounts": self.same_projects_count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroupScore":
        return cls(
            name=data["name"],
            group_xps=list(data.get("groupXPs", [])),
            group_total_xp=data.get("groupTotalXP", 0),
            group_average_xp=data.get("groupAverageXP", 0.0),
            projects=list(data.get("projects", [])),
            same_projects_count=data.get("sameProjectsCounts", 0),
        )


@dataclass
class DuplicatedPath:
    """A member whose recent group path is shared with somebody else."""

    path: str
    member: str
    first_name: str
    last_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "member": self.member,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DuplicatedPath":
        return cls(
            path=data["path"],
            member=data.get("member", ""),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
        )


@dataclass
class DetailedScore:
    """Score of an assignment, lower is better."""

    score: float
    xp_std_dev: float
    duplicated_paths: List[DuplicatedPath] = field(default_factory=list)
    duplicated_paths_malus: float = 0.0
    groups_scores: List[GroupScore] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "xpStdDev": self.xp_std_dev,
            "duplicatedPaths": [path.to_dict() for path in self.duplicated_paths],
            "duplicatedPathsMalus": self.duplicated_paths_malus,
            "groupsScores": [group_score.to_dict() for group_score in self.groups_scores],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DetailedScore":
        return cls(
            score=data["score"],
            xp_std_dev=data.get("xpStdDev", 0.0),
            duplicated_paths=[DuplicatedPath.from_dict(path) for path in data.get("duplicatedPaths", [])],
            duplicated_paths_malus=data.get("duplicatedPathsMalus", 0.0),
            groups_scores=[GroupScore.from_dict(group_score) for group_score in data.get("groupsScores", [])],
        )


def stddev(values: List[float]) -> float:
    """Population standard deviation."""
    n = len(values)
    if n == 0:
        return 0.0
    mean = sum(values) / n
    return math.sqrt(sum((value - mean) ** 2 for value in values) / n)


def path_of(member: Member, group_name: str, window: int) -> List[str]:
    """Get the member's last ``window`` groups, candidate group first.

    A history shorter than ``window - 1`` is padded with empty slots.
    """
    history = member.latest_groups[:window - 1]
    history = history + [""] * (window - 1 - len(history))
    return [group_name] + history


class Scorer:
    """Computes the detailed score of assignments for one track."""

    def __init__(
        self,
        index: MemberIndex,
        reference_year: int,
        xp_weight: float,
        malus_per_same_path: float,
        history_window: int,
    ):
        self.index = index
        self.reference_year = reference_year
        self.xp_weight = xp_weight
        self.malus_per_same_path = malus_per_same_path
        self.history_window = history_window

    def score(self, assignment: Assignment) -> DetailedScore:
        members = self.index.members
        groups_scores = []
        encountered_paths: Dict[str, List[Member]] = {}
        duplicated_paths: List[DuplicatedPath] = []

        for group, group_members in zip(self.index.groups, assignment):
            # Techleads are assumed to be senior: only devs are balanced
            group_xps = [
                members[member_idx].experience(self.reference_year)
                for member_idx in group_members
                if members[member_idx].role is Role.DEV
            ]
            group_total_xp = sum(group_xps)
            group_average_xp = round(group_total_xp / len(group_xps), 2) if group_xps else 0.0

            for member_idx in group_members:
                member = members[member_idx]
                path = path_of(member, group.name, self.history_window)
                # No record for one of the cycles: nothing to compare with
                if "" in path:
                    continue
                path_key = PATH_SEPARATOR.join(path)
                sharing = encountered_paths.setdefault(path_key, [])
                if len(sharing) == 1:
                    duplicated_paths.append(_duplicated_path(path_key, sharing[0]))
                if sharing:
                    duplicated_paths.append(_duplicated_path(path_key, member))
                sharing.append(member)

            projects = group_projects(members, group_members)
            groups_scores.append(GroupScore(
                name=group.name,
                group_xps=group_xps,
                group_total_xp=group_total_xp,
                group_average_xp=group_average_xp,
                projects=projects,
                same_projects_count=project_stats(projects)[1],
            ))

        xp_std_dev = stddev([
            group_score.group_average_xp * self.xp_weight for group_score in groups_scores
        ])
        duplicated_paths_malus = len(duplicated_paths) * self.malus_per_same_path

        return DetailedScore(
            score=xp_std_dev + duplicated_paths_malus,
            xp_std_dev=xp_std_dev,
            duplicated_paths=duplicated_paths,
            duplicated_paths_malus=duplicated_paths_malus,
            groups_scores=groups_scores,
        )


def _duplicated_path(path: str, member: Member) -> DuplicatedPath:
    return DuplicatedPath(
        path=path,
        member=member.identity,
        first_name=member.first_name,
        last_name=member.last_name,
    )
