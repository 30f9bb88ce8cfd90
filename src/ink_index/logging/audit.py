"""Append-only JSONL logs for tool requests and index lifecycle events."""

from __future__ import annotations

import json
import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

# Argument keys whose values are safe to record verbatim.
_VERBATIM_STRINGS = frozenset({"path", "name", "since"})
_VERBATIM_INTS = frozenset({"line", "column", "limit"})


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """Sanitized record of one tool request and its outcome."""

    timestamp: str
    request_id: str
    tool: str
    ok: bool
    blocked: bool
    error_code: str | None
    metadata: dict[str, object]


@dataclass(slots=True, frozen=True)
class IndexEvent:
    """One index lifecycle record: build, update, remove or read_failed."""

    timestamp: str
    event: str
    path: str | None
    detail: dict[str, object]


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision and a trailing Z."""
    now = datetime.now(tz=UTC)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def sanitize_arguments(arguments: dict[str, object]) -> dict[str, object]:
    """Describe tool arguments without copying free text such as story content.

    Paths, names and cursor integers are kept. Any other string is reduced to
    a presence flag and a length; containers are reduced to their shape.
    """
    sanitized: dict[str, object] = {}
    for key in sorted(arguments):
        sanitized.update(_describe(key, arguments[key]))
    return sanitized


def _describe(key: str, value: object) -> dict[str, object]:
    if isinstance(value, str):
        if key in _VERBATIM_STRINGS:
            return {key: value}
        return {f"{key}_present": True, f"{key}_length": len(value)}
    if isinstance(value, int) and key in _VERBATIM_INTS:
        return {key: value}
    if value is None or isinstance(value, (bool, int, float)):
        return {key: value}
    if isinstance(value, list):
        return {f"{key}_type": "list", f"{key}_length": len(value)}
    if isinstance(value, dict):
        return {f"{key}_type": "dict", f"{key}_keys": sorted(str(item) for item in value)}
    return {f"{key}_type": type(value).__name__}


class JsonlLog:
    """One JSON object per line; appends are serialized across worker threads."""

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: AuditEvent | IndexEvent) -> None:
        line = json.dumps(asdict(event), sort_keys=True)
        with self._lock, self._path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    def read(self, since: str | None = None, limit: int = 50) -> list[dict[str, object]]:
        """Return the newest ``limit`` records at or after ``since``, oldest first.

        Lines that are blank or not valid JSON are skipped.
        """
        if limit < 1 or not self._path.exists():
            return []
        recent: deque[dict[str, object]] = deque(maxlen=limit)
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                record = _decode(line)
                if record is None:
                    continue
                if since is not None and not _is_at_or_after(record, since):
                    continue
                recent.append(record)
        return list(recent)


def _decode(line: str) -> dict[str, object] | None:
    stripped = line.strip()
    if not stripped:
        return None
    try:
        record = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    return record if isinstance(record, dict) else None


def _is_at_or_after(record: dict[str, object], since: str) -> bool:
    timestamp = record.get("timestamp")
    return isinstance(timestamp, str) and timestamp >= since
