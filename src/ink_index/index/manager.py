"""In-memory structural index keyed by canonical file path."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from ink_index.config import DEFAULT_MAX_WORKERS, IndexConfig
from ink_index.index.discovery import discover_files
from ink_index.logging import IndexEvent, utc_timestamp
from ink_index.parsing import InkFile, canonical_path, parse_ink
from ink_index.security import SecurityLimits

EventSink = Callable[[IndexEvent], None]


@dataclass(slots=True, frozen=True)
class IndexStatus:
    """Current index status snapshot."""

    index_status: str
    last_build_timestamp: str | None
    indexed_file_count: int
    indexed_knot_count: int


@dataclass(slots=True, frozen=True)
class BuildFailure:
    """File that could not be read during a build."""

    path: str
    reason: str


@dataclass(slots=True, frozen=True)
class BuildReport:
    """Outcome of one full index build."""

    indexed: tuple[str, ...]
    failures: tuple[BuildFailure, ...]
    duration_ms: int
    timestamp: str


class StoryFileReadError(Exception):
    """Raised when a story file cannot be loaded as text."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


def read_story_file(path: str, max_file_bytes: int) -> str:
    """Read one story file as UTF-8 text, raising StoryFileReadError when unusable."""
    try:
        payload = Path(path).read_bytes()
    except OSError as error:
        raise StoryFileReadError(path, error.strerror or type(error).__name__) from error
    if len(payload) > max_file_bytes:
        raise StoryFileReadError(path, "File exceeds max_file_bytes limit.")
    if b"\x00" in payload:
        raise StoryFileReadError(path, "File looks binary.")
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as error:
        raise StoryFileReadError(path, "File is not valid UTF-8.") from error


class InkIndex:
    """Registry of parsed story files.

    The registry mapping is copy-on-write: every write publishes a new dict
    under a lock, so a reader always sees either the old or the new file for a
    path and never a partially built one. Callers must serialize updates to the
    same path themselves; the later completed write wins.
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        limits: SecurityLimits | None = None,
        event_sink: EventSink | None = None,
    ) -> None:
        self._max_workers = max(1, max_workers)
        self._limits = limits or SecurityLimits()
        self._event_sink = event_sink
        self._lock = threading.Lock()
        self._files: dict[str, InkFile] = {}
        self._last_build_timestamp: str | None = None
        self._built_paths: frozenset[str] = frozenset()

    def build_all(self, paths: Iterable[str | Path]) -> BuildReport:
        """Read and parse every path in parallel, then merge the results into the registry.

        Entries from the previous build that were not loaded again are dropped.
        Entries that only ever came from update or apply_edit are kept.
        """
        start = time.perf_counter()
        ordered = list(dict.fromkeys(canonical_path(path) for path in paths))
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            outcomes = list(pool.map(self._load, ordered))

        files: dict[str, InkFile] = {}
        failures: list[BuildFailure] = []
        for path, outcome in zip(ordered, outcomes, strict=True):
            if isinstance(outcome, BuildFailure):
                failures.append(outcome)
                self._emit("read_failed", path, {"reason": outcome.reason})
                continue
            files[path] = outcome

        timestamp = utc_timestamp()
        with self._lock:
            merged = {
                path: file
                for path, file in self._files.items()
                if path not in self._built_paths or path in files
            }
            merged.update(files)
            self._files = merged
            self._built_paths = frozenset(files)
            self._last_build_timestamp = timestamp
        duration_ms = int((time.perf_counter() - start) * 1000)
        self._emit(
            "build",
            None,
            {
                "indexed_file_count": len(files),
                "failed_file_count": len(failures),
                "duration_ms": duration_ms,
            },
        )
        return BuildReport(
            indexed=tuple(files.keys()),
            failures=tuple(failures),
            duration_ms=duration_ms,
            timestamp=timestamp,
        )

    def build_project(self, project_root: Path, config: IndexConfig) -> BuildReport:
        """Discover story files under a project root and build the index from them."""
        discovered = discover_files(project_root, config)
        return self.build_all(discovered.paths)

    def update(self, path: str | Path, text: str) -> InkFile:
        """Re-parse one file from text and replace (or insert) its entry."""
        parsed = parse_ink(path, text)
        with self._lock:
            files = dict(self._files)
            files[parsed.path] = parsed
            self._files = files
        self._emit("update", parsed.path, {"line_count": parsed.line_count})
        return parsed

    def apply_edit(self, path: str | Path, text: str) -> InkFile:
        """Entry point for editor change events carrying the full current text."""
        return self.update(path, text)

    def remove(self, path: str | Path) -> bool:
        """Drop a file from the registry, returning True when it was present."""
        key = canonical_path(path)
        with self._lock:
            if key not in self._files:
                return False
            files = dict(self._files)
            del files[key]
            self._files = files
        self._emit("remove", key, {})
        return True

    def get(self, path: str | Path) -> InkFile | None:
        """Return the current parsed file, or None when absent."""
        return self._files.get(canonical_path(path))

    def paths(self) -> tuple[str, ...]:
        """Return indexed paths in sorted order."""
        return tuple(sorted(self._files.keys()))

    def status(self) -> IndexStatus:
        """Return a status snapshot of the registry."""
        files = self._files
        if not files and self._last_build_timestamp is None:
            return IndexStatus(
                index_status="not_indexed",
                last_build_timestamp=None,
                indexed_file_count=0,
                indexed_knot_count=0,
            )
        return IndexStatus(
            index_status="ready",
            last_build_timestamp=self._last_build_timestamp,
            indexed_file_count=len(files),
            indexed_knot_count=sum(
                1 for file in files.values() for knot in file.knots if knot.name is not None
            ),
        )

    def _load(self, path: str) -> InkFile | BuildFailure:
        try:
            text = read_story_file(path, self._limits.max_file_bytes)
        except StoryFileReadError as error:
            return BuildFailure(path=path, reason=error.reason)
        return parse_ink(path, text)

    def _emit(self, event: str, path: str | None, detail: dict[str, object]) -> None:
        if self._event_sink is None:
            return
        self._event_sink(
            IndexEvent(timestamp=utc_timestamp(), event=event, path=path, detail=detail)
        )
