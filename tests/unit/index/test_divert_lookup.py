from __future__ import annotations

from pathlib import Path

import pytest

from ink_index.index import (
    InkIndex,
    completion_candidates,
    diverts,
    enclosing_stitch,
    resolve_definition,
)
from ink_index.parsing import Location, canonical_path

FOREST = "\n".join(
    [
        "VAR torch = false",
        "-> forest",
        "",
        "Prelude text.",
        "",
        "=== forest ===",
        "The trees close in.",
        "* (look_up) Look up",
        "  -> clearing",
        "",
        "= clearing",
        "A clearing opens.",
        "* (path_a) Take the path",
        "  -> forest",
        "* Wait",
        "  -> DONE",
    ]
)

RIVER = "\n".join(
    [
        "=== river ===",
        "= bank",
        "- (splash) Water.",
        "-> END",
    ]
)


@pytest.fixture
def forest_index(tmp_path: Path) -> tuple[InkIndex, Path]:
    index = InkIndex()
    path = tmp_path / "forest.ink"
    index.update(path, FOREST)
    return index, path


def test_completion_lists_scope_names_then_permanent_diverts(
    forest_index: tuple[InkIndex, Path],
) -> None:
    index, path = forest_index

    names = [candidate.name for candidate in completion_candidates(index, path, 15)]

    assert names == ["forest", "clearing", "path_a", "END", "DONE", "->"]


def test_completion_kinds_follow_target_type(forest_index: tuple[InkIndex, Path]) -> None:
    index, path = forest_index

    kinds = [candidate.kind for candidate in completion_candidates(index, path, 15)]

    assert kinds == ["knot", "stitch", "label", "keyword", "keyword", "keyword"]


def test_completion_excludes_stitches_and_labels_of_other_knots(tmp_path: Path) -> None:
    index = InkIndex()
    main = tmp_path / "main.ink"
    index.update(main, "INCLUDE river.ink\n" + FOREST)
    index.update(tmp_path / "river.ink", RIVER)

    names = {candidate.name for candidate in completion_candidates(index, main, 16)}

    assert names == {"forest", "river", "clearing", "path_a", "END", "DONE", "->"}
    assert not names & {"bank", "splash", "look_up"}


def test_completion_in_headerless_file_is_only_permanent(tmp_path: Path) -> None:
    index = InkIndex()
    index.update(tmp_path / "plain.ink", "Just words.\n")

    names = [candidate.name for candidate in completion_candidates(index, tmp_path / "plain.ink", 0)]

    assert names == ["END", "DONE", "->"]


def test_completion_for_unindexed_file_is_only_permanent(tmp_path: Path) -> None:
    names = [
        candidate.name
        for candidate in completion_candidates(InkIndex(), tmp_path / "missing.ink", 3)
    ]

    assert names == ["END", "DONE", "->"]


def test_resolve_definition_finds_label_line(forest_index: tuple[InkIndex, Path]) -> None:
    index, path = forest_index

    assert resolve_definition(index, "path_a", path, 15) == Location(
        path=canonical_path(path), line=12
    )


def test_resolve_definition_reports_miss_as_none(forest_index: tuple[InkIndex, Path]) -> None:
    index, path = forest_index

    assert resolve_definition(index, "nope", path, 15) is None
    assert resolve_definition(index, "END", path, 15) is None
    assert resolve_definition(index, "", path, 15) is None


def test_labels_outside_enclosing_stitch_are_not_resolved(
    forest_index: tuple[InkIndex, Path],
) -> None:
    index, path = forest_index

    assert resolve_definition(index, "look_up", path, 15) is None
    assert resolve_definition(index, "look_up", path, 8) == Location(
        path=canonical_path(path), line=7
    )


def test_knots_take_precedence_over_stitches(tmp_path: Path) -> None:
    index = InkIndex()
    main = tmp_path / "main.ink"
    other = tmp_path / "other.ink"
    index.update(main, "INCLUDE other.ink\n=== forest\n= clearing\ntext\n")
    index.update(other, "=== clearing\nElsewhere.\n")

    assert resolve_definition(index, "clearing", main, 3) == Location(
        path=canonical_path(other), line=0
    )


def test_end_of_file_line_resolves_final_stitch(forest_index: tuple[InkIndex, Path]) -> None:
    index, path = forest_index

    enclosing = enclosing_stitch(index, path, 16)

    assert enclosing is not None
    assert enclosing.knot.name == "forest"
    assert enclosing.stitch.name == "clearing"
    assert enclosing_stitch(index, path, 17) is None


def test_out_of_range_line_degrades_to_knots_only(forest_index: tuple[InkIndex, Path]) -> None:
    index, path = forest_index

    targets = diverts(index, path, 99)

    assert [(target.kind, target.name) for target in targets] == [
        ("knot", None),
        ("knot", "forest"),
    ]


def test_divert_targets_carry_owning_indices(forest_index: tuple[InkIndex, Path]) -> None:
    index, path = forest_index

    label = diverts(index, path, 12)[-1]

    assert label.kind == "label"
    assert (label.knot_index, label.stitch_index, label.label_index) == (1, 1, 0)
    file = index.get(path)
    assert file is not None
    assert file.knots[1].stitches[1].labels[0].name == label.name == "path_a"
