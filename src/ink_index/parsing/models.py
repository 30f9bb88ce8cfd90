"""Structural data types for parsed ink files."""

from __future__ import annotations

from dataclasses import dataclass

KIND_KNOT = "knot"
KIND_STITCH = "stitch"
KIND_LABEL = "label"
KIND_KEYWORD = "keyword"


@dataclass(slots=True, frozen=True)
class Label:
    """Named gather or choice marker inside a stitch."""

    name: str
    line: int


@dataclass(slots=True, frozen=True)
class Stitch:
    """Subsection of a knot covering the half-open range [start_line, end_line)."""

    name: str | None
    start_line: int
    end_line: int
    labels: tuple[Label, ...]

    def contains(self, line: int) -> bool:
        """Return True when line falls inside this stitch."""
        return self.start_line <= line < self.end_line


@dataclass(slots=True, frozen=True)
class Knot:
    """Top-level section covering the half-open range [start_line, end_line)."""

    name: str | None
    start_line: int
    end_line: int
    stitches: tuple[Stitch, ...]
    is_function: bool = False

    def contains(self, line: int) -> bool:
        """Return True when line falls inside this knot."""
        return self.start_line <= line < self.end_line


@dataclass(slots=True, frozen=True)
class InkFile:
    """Parsed structure for one ink file."""

    path: str
    text: str
    line_count: int
    knots: tuple[Knot, ...]
    includes: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class DivertTarget:
    """Addressable knot, stitch, or label located by indices into its owning file.

    ``stitch_index`` is None for knots and ``label_index`` is None for knots and
    stitches. ``name`` and ``line`` are resolved when the target is built so
    callers never need to chase the indices for the common fields.
    """

    kind: str
    path: str
    knot_index: int
    stitch_index: int | None
    label_index: int | None
    name: str | None
    line: int


@dataclass(slots=True, frozen=True)
class Location:
    """Resolved definition site."""

    path: str
    line: int


@dataclass(slots=True, frozen=True)
class CompletionCandidate:
    """Single divert completion entry."""

    name: str
    kind: str


def knot_target(file: InkFile, knot_index: int) -> DivertTarget:
    """Build a divert target for one knot of a file."""
    knot = file.knots[knot_index]
    return DivertTarget(
        kind=KIND_KNOT,
        path=file.path,
        knot_index=knot_index,
        stitch_index=None,
        label_index=None,
        name=knot.name,
        line=knot.start_line,
    )


def stitch_target(file: InkFile, knot_index: int, stitch_index: int) -> DivertTarget:
    """Build a divert target for one stitch of a knot."""
    stitch = file.knots[knot_index].stitches[stitch_index]
    return DivertTarget(
        kind=KIND_STITCH,
        path=file.path,
        knot_index=knot_index,
        stitch_index=stitch_index,
        label_index=None,
        name=stitch.name,
        line=stitch.start_line,
    )


def label_target(
    file: InkFile, knot_index: int, stitch_index: int, label_index: int
) -> DivertTarget:
    """Build a divert target for one label of a stitch."""
    label = file.knots[knot_index].stitches[stitch_index].labels[label_index]
    return DivertTarget(
        kind=KIND_LABEL,
        path=file.path,
        knot_index=knot_index,
        stitch_index=stitch_index,
        label_index=label_index,
        name=label.name,
        line=label.line,
    )
