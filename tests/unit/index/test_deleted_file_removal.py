from __future__ import annotations

from pathlib import Path

from ink_index.config import IndexConfig
from ink_index.index import InkIndex
from ink_index.parsing import canonical_path


def test_rebuild_drops_files_deleted_from_disk(tmp_path: Path) -> None:
    keep = tmp_path / "keep.ink"
    drop = tmp_path / "drop.ink"
    keep.write_text("=== keep\n", encoding="utf-8")
    drop.write_text("=== drop\n", encoding="utf-8")
    config = IndexConfig(include_extensions=(".ink",), exclude_globs=())
    index = InkIndex()

    index.build_project(tmp_path, config)
    assert index.paths() == (canonical_path(drop), canonical_path(keep))

    drop.unlink()
    index.build_project(tmp_path, config)

    assert index.paths() == (canonical_path(keep),)
    assert index.get(drop) is None


def test_remove_drops_a_single_entry(tmp_path: Path) -> None:
    index = InkIndex()
    index.update(tmp_path / "a.ink", "=== a\n")
    index.update(tmp_path / "b.ink", "=== b\n")

    assert index.remove(tmp_path / "a.ink") is True
    assert index.remove(tmp_path / "a.ink") is False
    assert index.paths() == (canonical_path(tmp_path / "b.ink"),)
