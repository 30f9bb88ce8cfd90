from __future__ import annotations

from pathlib import Path

import pytest

from ink_index.config import CliOverrides, load_effective_config
from ink_index.server import create_server


def test_invalid_limit_type_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "ink_index.toml").write_text(
        "\n".join(
            [
                "[limits]",
                'max_file_bytes = "not-an-int"',
            ]
        ),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="limits.max_file_bytes"):
        create_server(project_root=str(tmp_path))


def test_invalid_section_type_raises_value_error(tmp_path: Path) -> None:
    (tmp_path / "ink_index.toml").write_text('index = "not-a-table"', encoding="utf-8")

    with pytest.raises(ValueError, match="section 'index'"):
        create_server(project_root=str(tmp_path))


def test_blank_extension_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "ink_index.toml").write_text(
        "\n".join(
            [
                "[index]",
                'include_extensions = [".ink", " "]',
            ]
        ),
        encoding="utf-8",
    )

    with pytest.raises(ValueError, match="must not contain blanks"):
        load_effective_config(project_root=tmp_path)


def test_worker_count_above_cap_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="overrides.max_workers"):
        load_effective_config(project_root=tmp_path, overrides=CliOverrides(max_workers=500))


def test_boolean_worker_count_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "ink_index.toml").write_text("[index]\nmax_workers = true\n", encoding="utf-8")

    with pytest.raises(ValueError, match="index.max_workers"):
        load_effective_config(project_root=tmp_path)
