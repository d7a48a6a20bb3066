"""Best result persistence, so that a search can be stopped and resumed."""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import ResumeMismatchError
from .members import Member, Track
from .scorer import DetailedScore

BEST_RESULT_FILE = Path("best-result.json")


@dataclass
class TrackResult:
    """Best assignment found so far for a track."""

    track: str
    score: DetailedScore
    members: List[Member]
    assignment: Dict[str, str]

    def groups(self) -> Dict[str, List[Member]]:
        """Get members per group name, in assignment order."""
        groups: Dict[str, List[Member]] = {}
        for member in self.members:
            groups.setdefault(self.assignment[member.identity], []).append(member)
        return groups

    def to_dict(self) -> Dict[str, Any]:
        return {
            "track": self.track,
            "score": self.score.to_dict(),
            "members": [
                {**member.to_dict(), "group": self.assignment[member.identity]}
                for member in self.members
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackResult":
        members = []
        assignment = {}
        for member_data in data.get("members", []):
            member = Member.from_dict(member_data)
            members.append(member)
            assignment[member.identity] = member_data["group"]
        return cls(
            track=data["track"],
            score=DetailedScore.from_dict(data["score"]),
            members=members,
            assignment=assignment,
        )


def parse_track_result(track_name: str, data: Any, source: Any) -> TrackResult:
    """Build a stored track result, reporting a malformed entry as a resume failure."""
    try:
        return TrackResult.from_dict(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ResumeMismatchError(track_name, f"{source} holds a malformed result ({e!r})")


def member_signature(member: Member) -> str:
    return f"{member.role.value}_{member.identity}_{member.main_project}_{member.pro_start}"


def verify_resumable(stored: TrackResult, track: Track) -> None:
    """Check that a stored result was computed for the same members as the track.

    Raises:
        ResumeMismatchError: If the member sets differ
    """
    expected = sorted(member_signature(member) for member in stored.members)
    actual = sorted(member_signature(member) for member in track.members)
    if expected != actual:
        raise ResumeMismatchError(
            track.name,
            "it was computed for other members; shouldn't it be deleted?",
            expected=expected,
            actual=actual,
        )


class JsonCheckpointStore:
    """Keeps the best result of every track in a single JSON file.

    The file is replaced atomically, so that an interrupted write leaves the
    previous content untouched.
    """

    def __init__(self, path: Path = BEST_RESULT_FILE):
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = json.load(f)
        except ValueError as e:
            raise ResumeMismatchError("*", f"{self.path} is not a valid best result file ({e})")
        if not isinstance(content, dict):
            raise ResumeMismatchError("*", f"{self.path} is not a valid best result file")
        if not isinstance(content.get("trackResults", {}), dict):
            raise ResumeMismatchError("*", f"{self.path} must map track names to results under 'trackResults'")
        return content

    def load(self, track_name: str) -> Optional[TrackResult]:
        data = self._read().get("trackResults", {}).get(track_name)
        return parse_track_result(track_name, data, self.path) if data else None

    def load_all(self) -> Dict[str, TrackResult]:
        return {
            name: parse_track_result(name, data, self.path)
            for name, data in self._read().get("trackResults", {}).items()
        }

    def save(self, result: TrackResult, community: Dict[str, Any]) -> None:
        """Record a track result, keeping the other tracks' results.

        Each result keeps the settings it was scored with; the top-level
        `community` block holds the settings of the latest save.
        """
        content = self._read()
        content["community"] = community
        content.setdefault("trackResults", {})[result.track] = {**result.to_dict(), "community": community}

        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(content, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise


def open_store(path: Path):
    """Pick the checkpoint store matching the file extension."""
    if Path(path).suffix.lower() in (".db", ".sqlite", ".sqlite3"):
        from .db import SqliteCheckpointStore
        return SqliteCheckpointStore(path)
    return JsonCheckpointStore(path)
