"""Confine tool path arguments to the project root."""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

_DRIVE_PREFIX_RE = re.compile(r"^[a-zA-Z]:/")

_UNDER_ROOT_HINT = "Use a path located under the configured project root."


class PathBlockedError(Exception):
    """A path argument was refused; ``reason`` and ``hint`` go into the blocked envelope."""

    def __init__(self, reason: str, hint: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.hint = hint


def resolve_project_path(project_root: Path, candidate: str) -> Path:
    """Resolve a tool path argument to an absolute path inside ``project_root``.

    Backslashes are treated as separators. Relative paths may not contain
    ``..``; absolute paths and symlink targets must stay under the root.
    """
    root = project_root.resolve()
    text = candidate.replace("\\", "/")
    if not text.strip():
        raise PathBlockedError(
            "Path is empty.", "Provide a project-relative path such as 'story/main.ink'."
        )

    if text.startswith("/") or _DRIVE_PREFIX_RE.match(text):
        resolved = Path(text).resolve(strict=False)
        if not resolved.is_relative_to(root):
            raise PathBlockedError("Absolute path is outside project_root.", _UNDER_ROOT_HINT)
        return resolved

    relative = PurePosixPath(text)
    if ".." in relative.parts:
        raise PathBlockedError(
            "Path traversal is blocked.", "Remove '..' segments and use a project-relative path."
        )
    resolved = root.joinpath(*relative.parts).resolve(strict=False)
    if not resolved.is_relative_to(root):
        raise PathBlockedError("Resolved path escapes project_root.", _UNDER_ROOT_HINT)
    return resolved
