"""Range invariants shared by every parsed file."""

from __future__ import annotations

from ink_index.parsing.models import InkFile, Knot


class StructureContractError(ValueError):
    """Raised when parsed structure violates the range partition contract."""


def validate_file_structure(file: InkFile) -> None:
    """Validate that knots partition the file and stitches partition each knot."""
    if not file.knots:
        raise StructureContractError("File must contain at least one knot.")
    if file.knots[0].start_line != 0:
        raise StructureContractError("First knot must start at line 0.")
    if file.knots[-1].end_line != file.line_count + 1:
        raise StructureContractError("Last knot must end one line past end of file.")

    cursor = 0
    for knot in file.knots:
        if knot.start_line != cursor:
            raise StructureContractError(
                f"Knot {knot.name!r} starts at {knot.start_line}, expected {cursor}."
            )
        if knot.end_line <= knot.start_line:
            raise StructureContractError(f"Knot {knot.name!r} has an empty range.")
        _validate_stitches(knot)
        cursor = knot.end_line


def _validate_stitches(knot: Knot) -> None:
    knot_name = knot.name
    start = knot.start_line
    end = knot.end_line
    if not knot.stitches:
        raise StructureContractError(f"Knot {knot_name!r} must contain at least one stitch.")
    cursor = start
    for stitch in knot.stitches:
        if stitch.start_line != cursor:
            raise StructureContractError(
                f"Stitch {stitch.name!r} in knot {knot_name!r} starts at "
                f"{stitch.start_line}, expected {cursor}."
            )
        if stitch.end_line <= stitch.start_line:
            raise StructureContractError(f"Stitch {stitch.name!r} has an empty range.")
        for label in stitch.labels:
            if not stitch.contains(label.line):
                raise StructureContractError(
                    f"Label {label.name!r} at line {label.line} lies outside its stitch."
                )
        cursor = stitch.end_line
    if cursor != end:
        raise StructureContractError(
            f"Stitches of knot {knot_name!r} end at {cursor}, expected {end}."
        )
