"""Single-pass structural scanner for ink story files."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ink_index.parsing.models import InkFile, Knot, Label, Stitch

KNOT_HEADER_RE = re.compile(r"^\s*===\s*(function\s+)?([A-Za-z0-9_]+)")
STITCH_HEADER_RE = re.compile(r"^\s*=(?!=)\s*([A-Za-z0-9_]+)")
LABEL_RE = re.compile(r"^\s*[-*+]\s*\(([A-Za-z0-9_]+)\)")
INCLUDE_RE = re.compile(r"^\s*INCLUDE\s+([A-Za-z0-9_]+\.ink)(?=\s|$)")


class _ScanState(Enum):
    SCANNING_KNOT_HEADER = "scanning_knot_header"
    ACCUMULATING_KNOT_BODY = "accumulating_knot_body"


@dataclass(slots=True)
class _OpenSpan:
    """Header seen but not yet closed by the next boundary."""

    name: str | None
    start: int
    is_function: bool = False


@dataclass(slots=True, frozen=True)
class _ClosedSpan:
    name: str | None
    start: int
    end: int
    is_function: bool


def canonical_path(path: str | Path) -> str:
    """Return the absolute, normalized form of a path used as an index key."""
    return os.path.normpath(Path(path).absolute())


def split_lines(text: str) -> list[str]:
    """Split text the way an editor buffer counts lines, dropping CR terminators."""
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def parse_ink(path: str | Path, text: str) -> InkFile:
    """Parse one file into knots, stitches, labels, and resolved includes.

    Never raises on malformed input: unmatched lines are folded into the
    enclosing node. The last knot and its last stitch end one line past the
    final physical line so end of file is a valid landing context.
    """
    file_path = canonical_path(path)
    lines = split_lines(text)
    line_count = len(lines)
    eof_end = line_count + 1

    knots: list[Knot] = []
    for span in _scan_knots(lines, eof_end):
        stitches = tuple(
            Stitch(
                name=stitch_span.name,
                start_line=stitch_span.start,
                end_line=stitch_span.end,
                labels=_scan_labels(lines, stitch_span.start, stitch_span.end),
            )
            for stitch_span in _scan_stitches(lines, span.start, span.end)
        )
        knots.append(
            Knot(
                name=span.name,
                start_line=span.start,
                end_line=span.end,
                stitches=stitches,
                is_function=span.is_function,
            )
        )

    return InkFile(
        path=file_path,
        text=text,
        line_count=line_count,
        knots=tuple(knots),
        includes=_scan_includes(lines, file_path),
    )


def _scan_knots(lines: list[str], eof_end: int) -> list[_ClosedSpan]:
    spans: list[_ClosedSpan] = []
    state = _ScanState.SCANNING_KNOT_HEADER
    current: _OpenSpan | None = None
    for index, line in enumerate(lines):
        header = KNOT_HEADER_RE.match(line)
        if header is not None:
            if current is not None:
                spans.append(_close(current, index))
            current = _OpenSpan(
                name=header.group(2),
                start=index,
                is_function=header.group(1) is not None,
            )
            state = _ScanState.ACCUMULATING_KNOT_BODY
            continue
        if state is _ScanState.SCANNING_KNOT_HEADER:
            # Text before the first header becomes the anonymous prelude.
            current = _OpenSpan(name=None, start=index)
            state = _ScanState.ACCUMULATING_KNOT_BODY
    if current is not None:
        spans.append(_close(current, eof_end))
    return spans


def _scan_stitches(lines: list[str], start: int, end: int) -> list[_ClosedSpan]:
    spans: list[_ClosedSpan] = []
    current: _OpenSpan | None = None
    for index in range(start, min(end, len(lines))):
        header = STITCH_HEADER_RE.match(lines[index])
        if header is not None:
            if current is not None:
                spans.append(_close(current, index))
            current = _OpenSpan(name=header.group(1), start=index)
            continue
        if current is None:
            current = _OpenSpan(name=None, start=index)
    if current is not None:
        spans.append(_close(current, end))
    return spans


def _scan_labels(lines: list[str], start: int, end: int) -> tuple[Label, ...]:
    labels: list[Label] = []
    for offset, line in enumerate(lines[start:end]):
        found = LABEL_RE.match(line)
        if found is None:
            continue
        labels.append(Label(name=found.group(1), line=start + offset))
    return tuple(labels)


def _scan_includes(lines: list[str], file_path: str) -> tuple[str, ...]:
    directory = Path(file_path).parent
    seen: set[str] = set()
    includes: list[str] = []
    for line in lines:
        found = INCLUDE_RE.match(line)
        if found is None:
            continue
        target = canonical_path(directory / found.group(1))
        if target in seen:
            continue
        seen.add(target)
        includes.append(target)
    return tuple(includes)


def _close(span: _OpenSpan, end: int) -> _ClosedSpan:
    return _ClosedSpan(name=span.name, start=span.start, end=end, is_function=span.is_function)
