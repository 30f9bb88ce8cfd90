"""Divert scope resolution over the include graph and enclosing structure."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ink_index.index.manager import InkIndex
from ink_index.parsing import (
    DivertTarget,
    InkFile,
    Knot,
    Stitch,
    canonical_path,
    knot_target,
    label_target,
    stitch_target,
)


@dataclass(slots=True, frozen=True)
class EnclosingStitch:
    """Stitch containing a line, addressed by indices into its file."""

    file: InkFile
    knot_index: int
    stitch_index: int

    @property
    def knot(self) -> Knot:
        return self.file.knots[self.knot_index]

    @property
    def stitch(self) -> Stitch:
        return self.file.knots[self.knot_index].stitches[self.stitch_index]


def include_scope(index: InkIndex, path: str | Path) -> tuple[str, ...]:
    """Return the transitive include closure of a file, starting with the file itself.

    Paths missing from the index contribute nothing, including the starting
    path. Each path is expanded at most once, so include cycles terminate.
    Order is depth-first in declaration order.
    """
    visited: set[str] = set()
    ordered: list[str] = []
    stack = [canonical_path(path)]
    while stack:
        current = stack.pop()
        if current in visited:
            continue
        file = index.get(current)
        if file is None:
            continue
        visited.add(current)
        ordered.append(current)
        stack.extend(reversed(file.includes))
    return tuple(ordered)


def enclosing_stitch(index: InkIndex, path: str | Path, line: int) -> EnclosingStitch | None:
    """Locate the knot and stitch whose ranges contain a line."""
    file = index.get(path)
    if file is None:
        return None
    for knot_index, knot in enumerate(file.knots):
        if not knot.contains(line):
            continue
        for stitch_index, stitch in enumerate(knot.stitches):
            if stitch.contains(line):
                return EnclosingStitch(file=file, knot_index=knot_index, stitch_index=stitch_index)
        return None
    return None


def diverts(index: InkIndex, path: str | Path, line: int) -> list[DivertTarget]:
    """Return divert targets visible from a line, in lookup precedence order.

    Knots of every file in include scope come first, then the stitches of the
    enclosing knot, then the labels of the enclosing stitch.
    """
    targets: list[DivertTarget] = []
    for scoped_path in include_scope(index, path):
        file = index.get(scoped_path)
        if file is None:
            continue
        targets.extend(knot_target(file, knot_index) for knot_index in range(len(file.knots)))

    enclosing = enclosing_stitch(index, path, line)
    if enclosing is None:
        return targets
    file = enclosing.file
    knot_index = enclosing.knot_index
    targets.extend(
        stitch_target(file, knot_index, stitch_index)
        for stitch_index in range(len(enclosing.knot.stitches))
    )
    targets.extend(
        label_target(file, knot_index, enclosing.stitch_index, label_index)
        for label_index in range(len(enclosing.stitch.labels))
    )
    return targets
