"""Helpers shared by the test modules."""

from typing import Dict, List, Optional

from community_groups.checkpoint import TrackResult
from community_groups.members import NO_PIN, Group, Member, PinnedTo, Role, Track


def dev(trigram: str, pro_start: int = 2015, project: str = "P1", history: Optional[List[str]] = None) -> Member:
    return Member(
        last_name=f"{trigram}-last",
        first_name=trigram,
        role=Role.DEV,
        pro_start=pro_start,
        main_project=project,
        latest_groups=history or [],
        trigram=trigram,
    )


def techlead(trigram: str, pro_start: int = 2005, project: str = "P1", history: Optional[List[str]] = None) -> Member:
    return Member(
        last_name=f"{trigram}-last",
        first_name=trigram,
        role=Role.TECHLEAD,
        pro_start=pro_start,
        main_project=project,
        latest_groups=history or [],
        trigram=trigram,
    )


def group(name: str, devs: Optional[int], techleads: Optional[int] = 0, animator: Optional[str] = None) -> Group:
    return Group(
        name=name,
        devs_count=devs,
        techleads_count=techleads,
        pin=PinnedTo(animator) if animator else NO_PIN,
    )


def two_group_track() -> Track:
    """Two groups of 3 devs and 1 techlead, G1 animated by techlead TL1."""
    members = [
        dev("AAA", 2010, "alpha"),
        dev("BBB", 2012, "alpha"),
        dev("CCC", 2016, "beta"),
        dev("DDD", 2018, "beta"),
        dev("EEE", 2020, "gamma"),
        dev("FFF", 2022, "*"),
        techlead("TL1", 2005, "alpha"),
        techlead("TL2", 2008, "beta"),
    ]
    return Track(
        name="backend",
        groups=[group("G1", 3, 1, animator="TL1"), group("G2", 3, 1)],
        members=members,
    )


class MemoryStore:
    """Checkpoint store keeping results in memory, recording every save."""

    def __init__(self, results: Optional[Dict[str, TrackResult]] = None):
        self.results = dict(results or {})
        self.saved: List[TrackResult] = []

    def load(self, track_name: str) -> Optional[TrackResult]:
        return self.results.get(track_name)

    def load_all(self) -> Dict[str, TrackResult]:
        return dict(self.results)

    def save(self, result: TrackResult, community: dict) -> None:
        self.results[result.track] = result
        self.saved.append(result)


class RecordingReporter:
    """Reporter collecting what the search driver reports."""

    def __init__(self):
        self.results: List[TrackResult] = []
        self.iterations: List[int] = []
        self.progress = []
        self.tracks = []

    def on_track_started(self, track: Track) -> None:
        self.tracks.append(track.name)

    def on_result_found(self, result: TrackResult, iteration: int) -> None:
        self.results.append(result)
        self.iterations.append(iteration)

    def on_progress(self, progress) -> None:
        self.progress.append(progress)
