"""Size limits applied to incoming text and outgoing responses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class SecurityLimits:
    """Runtime limits for indexed files and tool responses."""

    max_file_bytes: int = 2 * 1024 * 1024
    max_total_bytes_per_response: int = 512 * 1024


@dataclass(slots=True, frozen=True)
class PolicyBlockedError(Exception):
    """Raised when a limits policy blocks an operation."""

    reason: str
    hint: str


def enforce_text_size_limit(text: str, limits: SecurityLimits) -> None:
    """Raise PolicyBlockedError when text exceeds max_file_bytes once encoded."""
    if len(text.encode("utf-8")) > limits.max_file_bytes:
        raise PolicyBlockedError(
            reason="Text exceeds max_file_bytes limit.",
            hint="Split the story into included files or raise limits.max_file_bytes.",
        )
