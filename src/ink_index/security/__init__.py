"""Sandboxing and limit primitives."""

from .paths import PathBlockedError, resolve_project_path
from .policy import PolicyBlockedError, SecurityLimits, enforce_text_size_limit

__all__ = [
    "PathBlockedError",
    "PolicyBlockedError",
    "SecurityLimits",
    "enforce_text_size_limit",
    "resolve_project_path",
]
