"""Story file index, scope resolution, and lookup."""

from .discovery import DiscoveryResult, discover_files, should_exclude
from .lookup import PERMANENT_DIVERTS, completion_candidates, resolve_definition
from .manager import (
    BuildFailure,
    BuildReport,
    IndexStatus,
    InkIndex,
    StoryFileReadError,
    read_story_file,
)
from .scope import EnclosingStitch, diverts, enclosing_stitch, include_scope

__all__ = [
    "BuildFailure",
    "BuildReport",
    "DiscoveryResult",
    "EnclosingStitch",
    "IndexStatus",
    "InkIndex",
    "PERMANENT_DIVERTS",
    "StoryFileReadError",
    "completion_candidates",
    "discover_files",
    "diverts",
    "enclosing_stitch",
    "include_scope",
    "read_story_file",
    "resolve_definition",
    "should_exclude",
]
