from __future__ import annotations

from pathlib import Path

from ink_index.parsing import canonical_path, parse_ink


def _knot_names(text: str, tmp_path: Path) -> list[str | None]:
    return [knot.name for knot in parse_ink(tmp_path / "a.ink", text).knots]


def test_knot_header_accepts_function_prefix_and_trailing_equals(tmp_path: Path) -> None:
    parsed = parse_ink(
        tmp_path / "a.ink",
        "=== intro ===\n===function helper(x)\n  ===   function   other\n=== functionality",
    )

    assert [(knot.name, knot.is_function) for knot in parsed.knots] == [
        ("intro", False),
        ("helper", True),
        ("other", True),
        ("functionality", False),
    ]


def test_knot_header_requires_identifier_after_equals(tmp_path: Path) -> None:
    assert _knot_names("=== \n===-bad\n==== four", tmp_path) == [None]


def test_stitch_header_needs_exactly_one_equals(tmp_path: Path) -> None:
    parsed = parse_ink(tmp_path / "a.ink", "=== k\n== double\n  =  spaced\n=tight\n= ")

    names = [stitch.name for stitch in parsed.knots[0].stitches]
    assert names == [None, "spaced", "tight"]


def test_labels_follow_choice_and_gather_markers(tmp_path: Path) -> None:
    parsed = parse_ink(
        tmp_path / "a.ink",
        "\n".join(
            [
                "=== k",
                "* (choice_one) Pick",
                "+ (sticky) Again",
                "- (gather_point) Together",
                "   *   (spaced) Loose",
                "*(tight) Close",
                "* text (not_label)",
                "-> (not_label_either)",
                "(bare)",
            ]
        ),
    )

    labels = [(label.name, label.line) for label in parsed.knots[0].stitches[0].labels]
    assert labels == [
        ("choice_one", 1),
        ("sticky", 2),
        ("gather_point", 3),
        ("spaced", 4),
        ("tight", 5),
    ]


def test_malformed_lines_are_folded_into_current_body(tmp_path: Path) -> None:
    parsed = parse_ink(tmp_path / "a.ink", "=== k\n= \n=== \n* ()\ntext")

    assert len(parsed.knots) == 1
    assert len(parsed.knots[0].stitches) == 1
    assert parsed.knots[0].stitches[0].labels == ()


def test_includes_are_resolved_against_file_directory(tmp_path: Path) -> None:
    story_dir = tmp_path / "story"
    parsed = parse_ink(
        story_dir / "main.ink",
        "\n".join(
            [
                "INCLUDE chapter_two.ink",
                "  INCLUDE chapter_two.ink",
                "INCLUDE  chapter_three.ink",
                "include lower.ink",
                "INCLUDE sub/dir.ink",
                "INCLUDE notes.txt",
                "INCLUDE foo.inkling",
                "INCLUDE bar.ink.bak",
                "INCLUDE trailing.ink   ",
            ]
        ),
    )

    assert parsed.path == canonical_path(story_dir / "main.ink")
    assert parsed.includes == (
        canonical_path(story_dir / "chapter_two.ink"),
        canonical_path(story_dir / "chapter_three.ink"),
        canonical_path(story_dir / "trailing.ink"),
    )


def test_canonical_path_normalizes_dot_segments(tmp_path: Path) -> None:
    messy = f"{tmp_path}/story/./drafts/../main.ink"

    assert canonical_path(messy) == canonical_path(tmp_path / "story" / "main.ink")
