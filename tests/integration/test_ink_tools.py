from __future__ import annotations

from pathlib import Path

from ink_index.server import StdioServer, create_server

STORY = "\n".join(
    [
        "INCLUDE extra.ink",
        "=== function lower(x) ===",
        "~ return x",
        "=== hub ===",
        "= gate",
        "- (opened) The gate swings.",
        "-> hub.gate",
    ]
)


def _call(server: StdioServer, method: str, params: dict[str, object]) -> dict[str, object]:
    return server.handle_payload({"id": f"req-{method}", "method": method, "params": params})


def _seeded_server(tmp_path: Path) -> StdioServer:
    (tmp_path / "main.ink").write_text(STORY, encoding="utf-8")
    (tmp_path / "extra.ink").write_text("=== side ===\nText.\n", encoding="utf-8")
    server = create_server(project_root=str(tmp_path))
    server.build_index()
    return server


def test_outline_reports_nested_structure(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)

    response = _call(server, "ink.outline", {"path": "main.ink"})

    assert response["ok"] is True
    result = response["result"]
    assert result["path"] == "main.ink"
    assert result["line_count"] == 7
    assert result["includes"] == ["extra.ink"]
    knots = result["knots"]
    assert [(k["name"], k["start_line"], k["end_line"], k["is_function"]) for k in knots] == [
        (None, 0, 1, False),
        ("lower", 1, 3, True),
        ("hub", 3, 8, False),
    ]
    hub_stitches = knots[2]["stitches"]
    assert [(s["name"], s["start_line"], s["end_line"]) for s in hub_stitches] == [
        (None, 3, 4),
        ("gate", 4, 8),
    ]
    assert hub_stitches[1]["labels"] == [{"name": "opened", "line": 5}]


def test_complete_without_trigger_returns_no_candidates(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)

    response = _call(
        server, "ink.complete", {"path": "main.ink", "line": 6, "prefix": "-> ->"}
    )

    assert response["result"] == {"triggered": False, "candidates": []}


def test_complete_lists_function_knots_and_included_knots(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)

    response = _call(server, "ink.complete", {"path": "main.ink", "line": 6, "prefix": "->"})

    assert response["result"]["triggered"] is True
    assert response["result"]["candidates"] == [
        {"name": "lower", "kind": "knot"},
        {"name": "hub", "kind": "knot"},
        {"name": "side", "kind": "knot"},
        {"name": "gate", "kind": "stitch"},
        {"name": "opened", "kind": "label"},
        {"name": "END", "kind": "keyword"},
        {"name": "DONE", "kind": "keyword"},
        {"name": "->", "kind": "keyword"},
    ]


def test_definition_follows_dotted_target_head(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)

    response = _call(
        server,
        "ink.definition",
        {"path": "main.ink", "line": 6, "line_text": "-> hub.gate", "column": 8},
    )

    assert response["result"] == {"found": True, "name": "hub", "path": "main.ink", "line": 3}


def test_definition_off_divert_reports_not_found(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)

    response = _call(
        server,
        "ink.definition",
        {"path": "main.ink", "line": 2, "line_text": "~ return x", "column": 3},
    )

    assert response["ok"] is True
    assert response["result"] == {"found": False, "name": None, "path": None, "line": None}


def test_definition_requires_name_or_cursor(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)

    response = _call(server, "ink.definition", {"path": "main.ink", "line": 2})

    assert response["error"]["code"] == "INVALID_PARAMS"


def test_update_changes_later_completions(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)

    updated = _call(
        server,
        "ink.update",
        {"path": "extra.ink", "text": "=== renamed ===\n= inner\n"},
    )
    completed = _call(server, "ink.complete", {"path": "main.ink", "line": 0})

    assert updated["result"] == {
        "path": "extra.ink",
        "line_count": 3,
        "knots": ["renamed"],
        "includes": [],
    }
    names = [candidate["name"] for candidate in completed["result"]["candidates"]]
    assert "renamed" in names
    assert "side" not in names
    assert "inner" not in names


def test_build_index_reports_skipped_files_as_warnings(tmp_path: Path) -> None:
    (tmp_path / "good.ink").write_text("=== good\n", encoding="utf-8")
    (tmp_path / "bad.ink").write_bytes(b"\xff\xfe\x00")
    server = create_server(project_root=str(tmp_path))

    response = _call(server, "ink.build_index", {})

    assert response["ok"] is True
    assert response["result"]["indexed"] == 1
    assert response["result"]["failed"] == 1
    assert "__warnings__" not in response["result"]
    assert response["warnings"] == ["Skipped bad.ink: File looks binary."]


def test_rebuild_drops_deleted_files(tmp_path: Path) -> None:
    server = _seeded_server(tmp_path)
    (tmp_path / "extra.ink").unlink()

    _call(server, "ink.build_index", {})
    outline = _call(server, "ink.outline", {"path": "extra.ink"})

    assert outline["error"]["code"] == "NOT_INDEXED"


def test_audit_log_returns_recent_sanitized_entries(tmp_path: Path) -> None:
    server = create_server(project_root=str(tmp_path))

    _call(server, "ink.status", {})
    server.handle_payload(
        {
            "id": "req-301",
            "method": "ink.update",
            "params": {"path": "main.ink", "text": "=== hidden_room\n"},
        }
    )
    response = _call(server, "ink.audit_log", {"limit": 2})

    entries = response["result"]["entries"]
    assert [entry["tool"] for entry in entries] == ["ink.status", "ink.update"]
    assert entries[1]["request_id"] == "req-301"
    assert entries[1]["metadata"]["path"] == "main.ink"
    assert "hidden_room" not in str(entries)


def test_audit_log_since_filter(tmp_path: Path) -> None:
    server = create_server(project_root=str(tmp_path))
    _call(server, "ink.status", {})

    response = _call(server, "ink.audit_log", {"since": "9999-01-01T00:00:00.000Z"})

    assert response["result"]["entries"] == []
