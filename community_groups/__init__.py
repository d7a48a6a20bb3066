"""Community Groups - A tool to split community members into balanced groups."""

__version__ = "0.1.0"

from .config import CommunityConfig
from .search import SearchDriver
from .validators import build_tracks

__all__ = ["CommunityConfig", "SearchDriver", "build_tracks"]
