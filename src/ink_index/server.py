"""STDIO JSON-lines server entrypoint."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TextIO

from ink_index import protocol
from ink_index.config import CliOverrides, ServerConfig, load_effective_config
from ink_index.index import InkIndex
from ink_index.logging import AuditEvent, JsonlLog, sanitize_arguments, utc_timestamp
from ink_index.parsing import canonical_path
from ink_index.protocol import Request, RequestError, RequestIds
from ink_index.security import PathBlockedError, PolicyBlockedError, resolve_project_path
from ink_index.tools import ToolDispatchError, ToolRegistry, register_builtin_tools

AUDIT_LOG_NAME = "audit.jsonl"
INDEX_LOG_NAME = "index.jsonl"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ink-index",
        description="Serve structural lookups over the ink stories under a project root.",
    )
    parser.add_argument("--project-root", default=".")
    parser.add_argument("--data-dir", default=None)
    for flag in ("--max-file-bytes", "--max-total-bytes-per-response", "--max-workers"):
        parser.add_argument(flag, type=int, default=None)
    parser.add_argument(
        "--skip-initial-build",
        action="store_true",
        help="Start with an empty index instead of scanning the project root.",
    )
    return parser


class StdioServer:
    """Routes ink.* tool calls from JSON lines to the structural index.

    Every request, valid or not, produces exactly one reply line and one
    audit record. Tool failures never escape: they become error or blocked
    envelopes.
    """

    def __init__(self, config: ServerConfig) -> None:
        self._config = config
        self._ids = RequestIds()
        self._audit_log = JsonlLog(config.data_dir / AUDIT_LOG_NAME)
        self._index_log = JsonlLog(config.data_dir / INDEX_LOG_NAME)
        self._index = InkIndex(
            max_workers=config.index.max_workers,
            limits=config.limits,
            event_sink=self._index_log.append,
        )
        self._registry = ToolRegistry()
        register_builtin_tools(
            self._registry,
            index=self._index,
            config=config,
            resolve_path=self._resolve_path,
            display_path=self._display_path,
            build_index=self.build_index,
            read_audit_entries=self._audit_log.read,
        )

    @property
    def index(self) -> InkIndex:
        return self._index

    def serve(self, in_stream: TextIO, out_stream: TextIO) -> None:
        """Answer each non-blank input line with one JSON line until EOF."""
        for raw_line in in_stream:
            line = raw_line.strip()
            if not line:
                continue
            out_stream.write(protocol.encode(self.handle_json_line(line)) + "\n")
            out_stream.flush()

    def handle_json_line(self, raw_line: str) -> dict[str, object]:
        try:
            payload = json.loads(raw_line)
        except json.JSONDecodeError:
            request_id = self._ids.next()
            reply = protocol.failure(request_id, "INVALID_JSON", "Request must be valid JSON.")
            self._audit(request_id, "invalid_json", {"raw_line_length": len(raw_line)}, reply)
            return reply
        return self.handle_payload(payload)

    def handle_payload(self, payload: object) -> dict[str, object]:
        try:
            request = protocol.parse_request(payload, self._ids)
        except RequestError as error:
            reply = protocol.failure(error.request_id, error.code, error.message)
            self._audit(error.request_id, "invalid_request", {}, reply)
            return reply
        reply = self._dispatch(request)
        self._audit(request.request_id, request.tool, request.arguments, reply)
        return reply

    def build_index(self) -> dict[str, object]:
        """Rebuild the index from every story file under the project root."""
        report = self._index.build_project(self._config.project_root, self._config.index)
        result: dict[str, object] = {
            "indexed": len(report.indexed),
            "failed": len(report.failures),
            "duration_ms": report.duration_ms,
            "timestamp": report.timestamp,
        }
        if report.failures:
            result["__warnings__"] = [
                f"Skipped {self._display_path(failure.path)}: {failure.reason}"
                for failure in report.failures
            ]
        return result

    def _dispatch(self, request: Request) -> dict[str, object]:
        request_id = request.request_id
        try:
            result = self._registry.dispatch(request.tool, request.arguments)
        except PathBlockedError as error:
            return protocol.blocked(request_id, "PATH_BLOCKED", error.reason, error.hint)
        except PolicyBlockedError as error:
            return protocol.blocked(request_id, "POLICY_BLOCKED", error.reason, error.hint)
        except ToolDispatchError as error:
            return protocol.failure(request_id, error.code, error.message)
        except Exception:
            return protocol.failure(
                request_id, "INTERNAL_ERROR", "Unhandled server error while executing tool."
            )
        reply = protocol.success(request_id, result, protocol.pop_warnings(result))
        if protocol.encoded_size(reply) > self._config.limits.max_total_bytes_per_response:
            return protocol.blocked(
                request_id,
                "POLICY_BLOCKED",
                "Response exceeds max_total_bytes_per_response limit.",
                "Request a smaller file outline or raise the response limit.",
            )
        return reply

    def _audit(
        self,
        request_id: str,
        tool: str,
        arguments: dict[str, object],
        reply: dict[str, object],
    ) -> None:
        error = reply.get("error")
        code = error.get("code") if isinstance(error, dict) else None
        self._audit_log.append(
            AuditEvent(
                timestamp=utc_timestamp(),
                request_id=request_id,
                tool=tool,
                ok=reply.get("ok") is True,
                blocked=reply.get("blocked") is True,
                error_code=code if isinstance(code, str) else None,
                metadata=sanitize_arguments(arguments),
            )
        )

    def _resolve_path(self, candidate: str) -> str:
        return canonical_path(resolve_project_path(self._config.project_root, candidate))

    def _display_path(self, path: str) -> str:
        candidate = Path(path)
        root = self._config.project_root
        if candidate.is_relative_to(root):
            return candidate.relative_to(root).as_posix()
        return path


def create_server(
    project_root: str,
    data_dir: str | None = None,
    cli_overrides: CliOverrides | None = None,
) -> StdioServer:
    """Create a configured server whose index starts empty."""
    overrides = cli_overrides or CliOverrides()
    if data_dir is not None and overrides.data_dir is None:
        overrides = CliOverrides(
            data_dir=Path(data_dir).resolve(),
            max_file_bytes=overrides.max_file_bytes,
            max_total_bytes_per_response=overrides.max_total_bytes_per_response,
            max_workers=overrides.max_workers,
        )
    config = load_effective_config(project_root=Path(project_root).resolve(), overrides=overrides)
    return StdioServer(config=config)


def main(argv: list[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    overrides = CliOverrides(
        data_dir=None if args.data_dir is None else Path(args.data_dir).resolve(),
        max_file_bytes=args.max_file_bytes,
        max_total_bytes_per_response=args.max_total_bytes_per_response,
        max_workers=args.max_workers,
    )
    try:
        server = create_server(project_root=args.project_root, cli_overrides=overrides)
    except ValueError as error:
        parser.error(str(error))
    if not args.skip_initial_build:
        server.build_index()
    server.serve(in_stream=sys.stdin, out_stream=sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
