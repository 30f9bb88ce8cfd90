"""Structural parsing for ink story files."""

from .models import (
    KIND_KEYWORD,
    KIND_KNOT,
    KIND_LABEL,
    KIND_STITCH,
    CompletionCandidate,
    DivertTarget,
    InkFile,
    Knot,
    Label,
    Location,
    Stitch,
    knot_target,
    label_target,
    stitch_target,
)
from .structure import canonical_path, parse_ink, split_lines
from .validation import StructureContractError, validate_file_structure

__all__ = [
    "CompletionCandidate",
    "DivertTarget",
    "InkFile",
    "KIND_KEYWORD",
    "KIND_KNOT",
    "KIND_LABEL",
    "KIND_STITCH",
    "Knot",
    "Label",
    "Location",
    "Stitch",
    "StructureContractError",
    "canonical_path",
    "knot_target",
    "label_target",
    "parse_ink",
    "split_lines",
    "stitch_target",
    "validate_file_structure",
]
