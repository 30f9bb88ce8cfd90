"""Definition lookup and divert completion built on scope resolution."""

from __future__ import annotations

from pathlib import Path

from ink_index.index.manager import InkIndex
from ink_index.index.scope import diverts
from ink_index.parsing import KIND_KEYWORD, CompletionCandidate, Location

PERMANENT_DIVERTS: tuple[CompletionCandidate, ...] = (
    CompletionCandidate(name="END", kind=KIND_KEYWORD),
    CompletionCandidate(name="DONE", kind=KIND_KEYWORD),
    CompletionCandidate(name="->", kind=KIND_KEYWORD),
)


def resolve_definition(
    index: InkIndex, name: str, path: str | Path, line: int
) -> Location | None:
    """Return the first target named ``name`` visible from a line, or None when absent."""
    if not name:
        return None
    for target in diverts(index, path, line):
        if target.name == name:
            return Location(path=target.path, line=target.line)
    return None


def completion_candidates(
    index: InkIndex, path: str | Path, line: int
) -> list[CompletionCandidate]:
    """Return named divert targets in precedence order followed by END, DONE and ->."""
    candidates = [
        CompletionCandidate(name=target.name, kind=target.kind)
        for target in diverts(index, path, line)
        if target.name is not None
    ]
    candidates.extend(PERMANENT_DIVERTS)
    return candidates
