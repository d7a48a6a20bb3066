"""Randomized search for the best assignment of a track."""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .checkpoint import TrackResult, verify_resumable
from .config import CommunityConfig
from .constraints import matches_constraints
from .errors import ResumeMismatchError
from .footprint import FootprintDeduplicator
from .indexer import MemberIndex
from .members import Track
from .scorer import Scorer
from .shuffler import Assignment, ConstrainedShuffler, assignment_from_mapping

PROGRESS_EVERY = 1_000_000


@dataclass
class SearchStats:
    """Counters of a running search."""

    iterations: int = 0
    matching_attempts: int = 0
    skipped_footprints: int = 0
    improvements: int = 0
    started_at: float = field(default_factory=time.monotonic)

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started_at


@dataclass
class SearchProgress:
    """Throughput since the previous progress report."""

    iterations: int
    elapsed_ms: int
    attempts_per_second: int
    matching_attempts_per_second: int


StopPredicate = Callable[[SearchStats], bool]


def never(stats: SearchStats) -> bool:
    return False


def iteration_cap(max_iterations: int) -> StopPredicate:
    def should_stop(stats: SearchStats) -> bool:
        return stats.iterations >= max_iterations
    return should_stop


def time_cap(max_seconds: float) -> StopPredicate:
    def should_stop(stats: SearchStats) -> bool:
        return stats.elapsed >= max_seconds
    return should_stop


def any_of(*predicates: StopPredicate) -> StopPredicate:
    def should_stop(stats: SearchStats) -> bool:
        return any(predicate(stats) for predicate in predicates)
    return should_stop


class CancellationFlag:
    """Stop predicate flipped from outside the loop, e.g. by a signal handler."""

    def __init__(self):
        self.cancelled = False

    def cancel(self, *args) -> None:
        self.cancelled = True

    def __call__(self, stats: SearchStats) -> bool:
        return self.cancelled


class SearchDriver:
    """Owns the search loop and the best result of a single track.

    Each iteration shuffles a candidate, checks it against the project
    constraints, skips it if an equivalent footprint was already scored, and
    scores it. Every strict improvement is persisted through the checkpoint
    store before being handed to the reporter.
    """

    def __init__(
        self,
        track: Track,
        config: CommunityConfig,
        store,
        reporter=None,
        seed: Optional[int] = None,
        deduplicate: bool = True,
        progress_every: int = PROGRESS_EVERY,
    ):
        self.track = track
        self.config = config
        self.store = store
        self.reporter = reporter
        self.progress_every = progress_every

        self.index = MemberIndex(track)
        self.shuffler = ConstrainedShuffler(self.index, seed=seed)
        self.deduplicator = FootprintDeduplicator(self.index, enabled=deduplicate)
        self.scorer = Scorer(
            self.index,
            reference_year=config.reference_year,
            xp_weight=config.xp_weight,
            malus_per_same_path=config.malus_per_same_path,
            history_window=config.history_window,
        )

        self.best: Optional[TrackResult] = None
        self.stats = SearchStats()

    def load_initial_assignment(self) -> Optional[Assignment]:
        """Load the persisted best result of the track, if any.

        Raises:
            ResumeMismatchError: If the stored result doesn't fit the track
        """
        stored = self.store.load(self.track.name)
        if stored is None:
            return None

        verify_resumable(stored, self.track)
        try:
            return assignment_from_mapping(self.index, stored.assignment)
        except ValueError as e:
            raise ResumeMismatchError(self.track.name, str(e))

    def run(self, should_stop: StopPredicate = never) -> Optional[TrackResult]:
        """Search until ``should_stop`` says so.

        A track with a single group has only one possible assignment: it is
        evaluated once and the search ends.

        Returns:
            The best result found, or None if no candidate matched the constraints

        Raises:
            ResumeMismatchError: If a persisted result doesn't match the track
        """
        initial_assignment = self.load_initial_assignment()

        self.stats = SearchStats()
        stats = self.stats
        last_iterations, last_matching, last_ts = 0, 0, time.monotonic()

        while not should_stop(stats):
            assignment = self.shuffler.shuffle()
            if initial_assignment is not None and stats.iterations == 0:
                assignment = initial_assignment

            self._evaluate(assignment)
            stats.iterations += 1

            if self.index.single_group:
                break

            if self.reporter is not None and stats.iterations % self.progress_every == 0:
                now = time.monotonic()
                elapsed = max(now - last_ts, 1e-9)
                self.reporter.on_progress(SearchProgress(
                    iterations=stats.iterations,
                    elapsed_ms=round(elapsed * 1000),
                    attempts_per_second=round((stats.iterations - last_iterations) / elapsed),
                    matching_attempts_per_second=round((stats.matching_attempts - last_matching) / elapsed),
                ))
                last_iterations, last_matching, last_ts = stats.iterations, stats.matching_attempts, now

        return self.best

    def _evaluate(self, assignment: Assignment) -> None:
        if not matches_constraints(
            self.index,
            assignment,
            self.config.max_same_project_per_group,
            self.config.max_members_per_group_with_duplicated_project,
        ):
            return
        self.stats.matching_attempts += 1

        if not self.deduplicator.is_new(assignment):
            self.stats.skipped_footprints += 1
            return

        score = self.scorer.score(assignment)
        if self.best is not None and score.score >= self.best.score.score:
            return

        self.best = self._result_of(assignment, score)
        self.stats.improvements += 1
        self.store.save(self.best, self.config.tunables())
        if self.reporter is not None:
            self.reporter.on_result_found(self.best, self.stats.iterations)

    def _result_of(self, assignment: Assignment, score) -> TrackResult:
        members = self.index.members
        mapping: Dict[str, str] = {}
        ordered = []
        for group, group_members in zip(self.index.groups, assignment):
            for member_idx in group_members:
                mapping[members[member_idx].identity] = group.name
                ordered.append(members[member_idx])
        return TrackResult(track=self.track.name, score=score, members=ordered, assignment=mapping)


def search_tracks(
    tracks,
    config: CommunityConfig,
    store,
    reporter=None,
    should_stop_factory: Callable[[], StopPredicate] = lambda: never,
    cancellation: Optional[CancellationFlag] = None,
    **driver_options: Any,
) -> Dict[str, Optional[TrackResult]]:
    """Run one search per track, one after the other.

    ``should_stop_factory`` gives each track its own stop predicate, so that
    iteration and time caps apply per track. Once ``cancellation`` is set, the
    remaining tracks are not searched.
    """
    results = {}
    for track in tracks:
        if cancellation is not None and cancellation.cancelled:
            break
        if reporter is not None:
            reporter.on_track_started(track)
        driver = SearchDriver(track, config, store, reporter=reporter, **driver_options)
        should_stop = should_stop_factory()
        if cancellation is not None:
            should_stop = any_of(cancellation, should_stop)
        results[track.name] = driver.run(should_stop)
    return results
