"""Built-in ink.* tools over the structural index."""

from __future__ import annotations

from collections.abc import Callable

from ink_index.config import ServerConfig
from ink_index.editing import divert_name_at, is_divert_trigger
from ink_index.index import (
    InkIndex,
    completion_candidates,
    include_scope,
    resolve_definition,
)
from ink_index.parsing import InkFile
from ink_index.security import enforce_text_size_limit
from ink_index.tools.registry import ToolDispatchError, ToolHandler, ToolRegistry

DEFAULT_AUDIT_LIMIT = 50
MAX_AUDIT_LIMIT = 500

PathResolver = Callable[[str], str]


def register_builtin_tools(
    registry: ToolRegistry,
    index: InkIndex,
    config: ServerConfig,
    resolve_path: PathResolver,
    display_path: Callable[[str], str],
    build_index: Callable[[], dict[str, object]],
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> None:
    """Register the ink.* tool set."""
    registry.register("ink.status", _status_handler(index, config))
    registry.register("ink.build_index", _build_index_handler(build_index))
    registry.register("ink.update", _update_handler(index, config, resolve_path, display_path))
    registry.register("ink.outline", _outline_handler(index, resolve_path, display_path))
    registry.register(
        "ink.include_scope", _include_scope_handler(index, resolve_path, display_path)
    )
    registry.register("ink.complete", _complete_handler(index, resolve_path))
    registry.register("ink.definition", _definition_handler(index, resolve_path, display_path))
    registry.register("ink.audit_log", _audit_log_handler(read_audit_entries))


def _status_handler(index: InkIndex, config: ServerConfig) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        status = index.status()
        return {
            "project_root": str(config.project_root),
            "index_status": status.index_status,
            "last_build_timestamp": status.last_build_timestamp,
            "indexed_file_count": status.indexed_file_count,
            "indexed_knot_count": status.indexed_knot_count,
            "effective_config": config.to_public_dict(),
        }

    return handler


def _build_index_handler(build_index: Callable[[], dict[str, object]]) -> ToolHandler:
    def handler(_: dict[str, object]) -> dict[str, object]:
        return build_index()

    return handler


def _update_handler(
    index: InkIndex,
    config: ServerConfig,
    resolve_path: PathResolver,
    display_path: Callable[[str], str],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path = resolve_path(_require_path(arguments, "ink.update"))
        text = arguments.get("text")
        if not isinstance(text, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="ink.update text must be a string.",
            )
        enforce_text_size_limit(text, config.limits)
        parsed = index.apply_edit(path, text)
        return {
            "path": display_path(parsed.path),
            "line_count": parsed.line_count,
            "knots": [knot.name for knot in parsed.knots if knot.name is not None],
            "includes": [display_path(include) for include in parsed.includes],
        }

    return handler


def _outline_handler(
    index: InkIndex,
    resolve_path: PathResolver,
    display_path: Callable[[str], str],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path = resolve_path(_require_path(arguments, "ink.outline"))
        file = index.get(path)
        if file is None:
            raise ToolDispatchError(
                code="NOT_INDEXED",
                message=f"ink.outline path is not indexed: {display_path(path)}",
            )
        return _outline_payload(file, display_path)

    return handler


def _include_scope_handler(
    index: InkIndex,
    resolve_path: PathResolver,
    display_path: Callable[[str], str],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path = resolve_path(_require_path(arguments, "ink.include_scope"))
        return {
            "path": display_path(path),
            "scope": [display_path(item) for item in include_scope(index, path)],
        }

    return handler


def _complete_handler(index: InkIndex, resolve_path: PathResolver) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path = resolve_path(_require_path(arguments, "ink.complete"))
        line = _require_line(arguments, "ink.complete")
        prefix = arguments.get("prefix")
        if prefix is not None and not isinstance(prefix, str):
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="ink.complete prefix must be a string when provided.",
            )
        if prefix is not None and not is_divert_trigger(prefix):
            return {"triggered": False, "candidates": []}
        return {
            "triggered": True,
            "candidates": [
                {"name": candidate.name, "kind": candidate.kind}
                for candidate in completion_candidates(index, path, line)
            ],
        }

    return handler


def _definition_handler(
    index: InkIndex,
    resolve_path: PathResolver,
    display_path: Callable[[str], str],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        path = resolve_path(_require_path(arguments, "ink.definition"))
        line = _require_line(arguments, "ink.definition")
        name = _definition_name(arguments)
        if name is None:
            return {"found": False, "name": None, "path": None, "line": None}
        location = resolve_definition(index, name, path, line)
        if location is None:
            return {"found": False, "name": name, "path": None, "line": None}
        return {
            "found": True,
            "name": name,
            "path": display_path(location.path),
            "line": location.line,
        }

    return handler


def _audit_log_handler(
    read_audit_entries: Callable[[str | None, int], list[dict[str, object]]],
) -> ToolHandler:
    def handler(arguments: dict[str, object]) -> dict[str, object]:
        since_value = arguments.get("since")
        limit_value = arguments.get("limit", DEFAULT_AUDIT_LIMIT)

        since: str | None = since_value if isinstance(since_value, str) else None
        limit = limit_value if isinstance(limit_value, int) else DEFAULT_AUDIT_LIMIT
        if limit < 1:
            limit = 1
        if limit > MAX_AUDIT_LIMIT:
            limit = MAX_AUDIT_LIMIT

        return {"entries": read_audit_entries(since, limit)}

    return handler


def _outline_payload(file: InkFile, display_path: Callable[[str], str]) -> dict[str, object]:
    return {
        "path": display_path(file.path),
        "line_count": file.line_count,
        "includes": [display_path(include) for include in file.includes],
        "knots": [
            {
                "name": knot.name,
                "start_line": knot.start_line,
                "end_line": knot.end_line,
                "is_function": knot.is_function,
                "stitches": [
                    {
                        "name": stitch.name,
                        "start_line": stitch.start_line,
                        "end_line": stitch.end_line,
                        "labels": [
                            {"name": label.name, "line": label.line} for label in stitch.labels
                        ],
                    }
                    for stitch in knot.stitches
                ],
            }
            for knot in file.knots
        ],
    }


def _definition_name(arguments: dict[str, object]) -> str | None:
    name = arguments.get("name")
    if name is not None:
        if not isinstance(name, str) or not name.strip():
            raise ToolDispatchError(
                code="INVALID_PARAMS",
                message="ink.definition name must be a non-empty string.",
            )
        return name.strip()
    line_text = arguments.get("line_text")
    column = arguments.get("column")
    if not isinstance(line_text, str) or isinstance(column, bool) or not isinstance(column, int):
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message="ink.definition requires name, or line_text with an integer column.",
        )
    return divert_name_at(line_text, column)


def _require_path(arguments: dict[str, object], tool: str) -> str:
    path_value = arguments.get("path")
    if not isinstance(path_value, str) or not path_value:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} path must be a non-empty string.",
        )
    return path_value


def _require_line(arguments: dict[str, object], tool: str) -> int:
    line_value = arguments.get("line")
    if isinstance(line_value, bool) or not isinstance(line_value, int) or line_value < 0:
        raise ToolDispatchError(
            code="INVALID_PARAMS",
            message=f"{tool} line must be a non-negative integer.",
        )
    return line_value
