"""Configuration loading with merge order defaults, then ink_index.toml, then CLI."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

from ink_index.security import SecurityLimits

CONFIG_FILE_NAME = "ink_index.toml"
DATA_DIR_NAME = ".ink_index"

MAX_FILE_BYTES_CAP = 16 * 1024 * 1024
MAX_TOTAL_BYTES_PER_RESPONSE_CAP = 4 * 1024 * 1024
MAX_WORKERS_CAP = 64

DEFAULT_INCLUDE_EXTENSIONS = (".ink",)
DEFAULT_EXCLUDE_GLOBS = ("**/.git/**", "**/node_modules/**", f"**/{DATA_DIR_NAME}/**")
DEFAULT_MAX_WORKERS = 8

# (section, field, cap) for every positive integer setting.
_CAPPED_FIELDS = (
    ("limits", "max_file_bytes", MAX_FILE_BYTES_CAP),
    ("limits", "max_total_bytes_per_response", MAX_TOTAL_BYTES_PER_RESPONSE_CAP),
    ("index", "max_workers", MAX_WORKERS_CAP),
)


@dataclass(slots=True, frozen=True)
class IndexConfig:
    """Which files a project build picks up and how many threads read them."""

    include_extensions: tuple[str, ...]
    exclude_globs: tuple[str, ...]
    max_workers: int = DEFAULT_MAX_WORKERS


@dataclass(slots=True, frozen=True)
class ServerConfig:
    """Fully merged server configuration."""

    project_root: Path
    data_dir: Path
    limits: SecurityLimits
    index: IndexConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for tool responses."""
        return {
            "project_root": str(self.project_root),
            "data_dir": str(self.data_dir),
            "limits": {
                "max_file_bytes": self.limits.max_file_bytes,
                "max_total_bytes_per_response": self.limits.max_total_bytes_per_response,
            },
            "index": {
                "include_extensions": list(self.index.include_extensions),
                "exclude_globs": list(self.index.exclude_globs),
                "max_workers": self.index.max_workers,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    data_dir: Path | None = None
    max_file_bytes: int | None = None
    max_total_bytes_per_response: int | None = None
    max_workers: int | None = None


def default_config(project_root: Path) -> ServerConfig:
    root = project_root.resolve()
    return ServerConfig(
        project_root=root,
        data_dir=root / DATA_DIR_NAME,
        limits=SecurityLimits(),
        index=IndexConfig(
            include_extensions=DEFAULT_INCLUDE_EXTENSIONS,
            exclude_globs=DEFAULT_EXCLUDE_GLOBS,
        ),
    )


def load_project_config_file(project_root: Path) -> dict[str, object]:
    """Read ink_index.toml from the project root, or return {} when there is none."""
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.is_file():
        return {}
    with config_path.open("rb") as handle:
        return tomllib.load(handle)


def merge_config(
    base: ServerConfig, project_payload: dict[str, object], overrides: CliOverrides
) -> ServerConfig:
    """Layer the project file over ``base``, then apply ``overrides``."""
    sections = {name: _section(project_payload, name) for name in ("limits", "index")}
    merged = base
    for section, field, cap in _CAPPED_FIELDS:
        value = sections[section].get(field)
        if value is not None:
            merged = _with_field(merged, section, field, _capped(value, f"{section}.{field}", cap))

    index_section = sections["index"]
    index = merged.index
    if "include_extensions" in index_section:
        raw = _strings(index_section["include_extensions"], "index.include_extensions")
        index = replace(index, include_extensions=_normalize_extensions(raw))
    if "exclude_globs" in index_section:
        index = replace(
            index, exclude_globs=_strings(index_section["exclude_globs"], "index.exclude_globs")
        )
    return apply_cli_overrides(replace(merged, index=index), overrides)


def apply_cli_overrides(config: ServerConfig, overrides: CliOverrides) -> ServerConfig:
    """Apply startup overrides at highest precedence; caps still apply."""
    merged = config
    for section, field, cap in _CAPPED_FIELDS:
        value = getattr(overrides, field)
        if value is not None:
            merged = _with_field(merged, section, field, _capped(value, f"overrides.{field}", cap))
    data_dir = overrides.data_dir if overrides.data_dir is not None else merged.data_dir
    return replace(merged, data_dir=data_dir.resolve())


def load_effective_config(
    project_root: Path, overrides: CliOverrides | None = None
) -> ServerConfig:
    """Build the effective config: defaults -> ink_index.toml -> overrides."""
    base = default_config(project_root)
    payload = load_project_config_file(base.project_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _section(payload: dict[str, object], name: str) -> dict[str, object]:
    value = payload.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a table.")
    return value


def _with_field(config: ServerConfig, section: str, field: str, value: int) -> ServerConfig:
    if section == "limits":
        return replace(config, limits=replace(config.limits, **{field: value}))
    return replace(config, index=replace(config.index, **{field: value}))


def _capped(value: object, name: str, cap: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value


def _strings(value: object, name: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"Config field '{name}' must be a list of strings.")
    return tuple(value)


def _normalize_extensions(extensions: tuple[str, ...]) -> tuple[str, ...]:
    normalized: list[str] = []
    for extension in extensions:
        lowered = extension.strip().lower()
        if not lowered:
            raise ValueError("Config field 'index.include_extensions' must not contain blanks.")
        normalized.append(lowered if lowered.startswith(".") else f".{lowered}")
    return tuple(normalized)
