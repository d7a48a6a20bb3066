"""Exceptions raised by Community Groups."""

from typing import Dict, List, Optional


class CommunityGroupsError(Exception):
    """Base exception for all community groups errors."""


class ConfigurationError(CommunityGroupsError):
    """Raised when the community descriptor is inconsistent with the members.

    Every violation found is kept, grouped by category, so that the operator
    can fix them all in one go.
    """

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = {category: list(messages) for category, messages in errors.items() if messages}
        lines = [
            f"{category.replace('_', ' ')}: {message}"
            for category, messages in self.errors.items()
            for message in messages
        ]
        super().__init__("Invalid community configuration:\n  " + "\n  ".join(lines))

    def count(self) -> int:
        return sum(len(messages) for messages in self.errors.values())


class ResumeMismatchError(CommunityGroupsError):
    """Raised when a persisted best result doesn't match the current members."""

    def __init__(
        self,
        track: str,
        reason: str,
        expected: Optional[List[str]] = None,
        actual: Optional[List[str]] = None,
    ):
        self.track = track
        self.reason = reason
        self.expected = expected or []
        self.actual = actual or []
        super().__init__(f"Stored best result for track '{track}' can't be resumed: {reason}")
