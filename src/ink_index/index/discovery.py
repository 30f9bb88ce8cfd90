"""Deterministic discovery of indexable story files."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path

from ink_index.config import IndexConfig
from ink_index.parsing import canonical_path


@dataclass(slots=True, frozen=True)
class DiscoveryResult:
    """Discovered paths and deterministic scan counters."""

    paths: tuple[str, ...]
    total_candidates: int
    excluded_by_glob: int
    excluded_by_extension: int


def discover_files(project_root: Path, config: IndexConfig) -> DiscoveryResult:
    """Walk the project tree and return canonical paths of indexable files in sorted order."""
    root = project_root.resolve()
    include_extensions = {extension.lower() for extension in config.include_extensions}
    excluded_dir_names = _excluded_dir_names(config.exclude_globs)

    paths: list[str] = []
    total_candidates = 0
    excluded_by_glob = 0
    excluded_by_extension = 0
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as entries:
                ordered_entries = sorted(entries, key=lambda item: item.name)
        except OSError:
            continue
        for entry in reversed(ordered_entries):
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if entry.is_dir(follow_symlinks=False):
                if entry.name in excluded_dir_names:
                    continue
                stack.append(full_path)
                continue
            if not entry.is_file(follow_symlinks=False):
                continue
            total_candidates += 1
            if should_exclude(relative, config.exclude_globs):
                excluded_by_glob += 1
                continue
            if full_path.suffix.lower() not in include_extensions:
                excluded_by_extension += 1
                continue
            paths.append(canonical_path(full_path))

    paths.sort()
    return DiscoveryResult(
        paths=tuple(paths),
        total_candidates=total_candidates,
        excluded_by_glob=excluded_by_glob,
        excluded_by_extension=excluded_by_extension,
    )


def should_exclude(relative_path: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a path matches configured ignore globs."""
    anchored = f"/{relative_path}"
    return any(
        fnmatch.fnmatch(relative_path, pattern) or fnmatch.fnmatch(anchored, pattern)
        for pattern in exclude_globs
    )


def _excluded_dir_names(exclude_globs: tuple[str, ...]) -> set[str]:
    """Extract directory-name prunes from **/name/** glob patterns."""
    output: set[str] = set()
    for pattern in exclude_globs:
        if not pattern.startswith("**/") or not pattern.endswith("/**"):
            continue
        name = pattern[3:-3].strip("/")
        if not name:
            continue
        if any(char in name for char in "*?[]{}"):
            continue
        output.add(name)
    return output
