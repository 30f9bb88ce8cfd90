"""JSON-lines request parsing and response envelopes."""

from __future__ import annotations

import itertools
import json
from dataclasses import dataclass

TOOLS_CALL_METHOD = "tools/call"


@dataclass(slots=True, frozen=True)
class Request:
    """One validated request: a tool name, its arguments and the id to echo back."""

    request_id: str
    tool: str
    arguments: dict[str, object]


@dataclass(slots=True, frozen=True)
class RequestError(Exception):
    """Malformed request; carries the id chosen for the reply."""

    request_id: str
    code: str
    message: str


class RequestIds:
    """Sequential fallback ids for requests that arrive without a usable one."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def next(self) -> str:
        return f"req-{next(self._counter):06d}"

    def pick(self, raw: object) -> str:
        """Echo a string or integer id, otherwise allocate a fallback."""
        if isinstance(raw, bool):
            return self.next()
        if isinstance(raw, int):
            return str(raw)
        if isinstance(raw, str) and raw:
            return raw
        return self.next()


def parse_request(payload: object, ids: RequestIds) -> Request:
    """Normalize a decoded payload, unwrapping ``tools/call`` into its tool name.

    Raises RequestError with INVALID_REQUEST or INVALID_PARAMS when the shape is wrong.
    """
    if not isinstance(payload, dict):
        raise RequestError(ids.next(), "INVALID_REQUEST", "Request must be an object.")
    request_id = ids.pick(payload.get("id"))
    method = payload.get("method")
    if not isinstance(method, str) or not method:
        raise RequestError(
            request_id, "INVALID_REQUEST", "Request method must be a non-empty string."
        )
    params = payload.get("params", {})
    if not isinstance(params, dict):
        raise RequestError(request_id, "INVALID_PARAMS", "Request params must be an object.")
    if method != TOOLS_CALL_METHOD:
        return Request(request_id=request_id, tool=method, arguments=params)

    name = params.get("name")
    if not isinstance(name, str) or not name:
        raise RequestError(
            request_id, "INVALID_PARAMS", "tools/call params.name must be a non-empty string."
        )
    arguments = params.get("arguments", {})
    if not isinstance(arguments, dict):
        raise RequestError(
            request_id, "INVALID_PARAMS", "tools/call params.arguments must be an object."
        )
    return Request(request_id=request_id, tool=name, arguments=arguments)


def _envelope(
    request_id: str,
    *,
    ok: bool,
    result: dict[str, object],
    warnings: list[str] | None = None,
    blocked: bool = False,
    error: dict[str, str] | None = None,
) -> dict[str, object]:
    envelope: dict[str, object] = {
        "request_id": request_id,
        "ok": ok,
        "result": result,
        "warnings": list(warnings or ()),
        "blocked": blocked,
    }
    if error is not None:
        envelope["error"] = error
    return envelope


def success(request_id: str, result: dict[str, object], warnings: list[str]) -> dict[str, object]:
    return _envelope(request_id, ok=True, result=result, warnings=warnings)


def failure(request_id: str, code: str, message: str) -> dict[str, object]:
    return _envelope(
        request_id, ok=False, result={}, error={"code": code, "message": message}
    )


def blocked(request_id: str, code: str, reason: str, hint: str) -> dict[str, object]:
    """Refusal envelope: the reason doubles as the error message."""
    return _envelope(
        request_id,
        ok=False,
        result={"reason": reason, "hint": hint},
        blocked=True,
        error={"code": code, "message": reason},
    )


def encoded_size(envelope: dict[str, object]) -> int:
    return len(encode(envelope).encode("utf-8"))


def encode(envelope: dict[str, object]) -> str:
    return json.dumps(envelope, sort_keys=True)


def pop_warnings(result: dict[str, object]) -> list[str]:
    """Remove the ``__warnings__`` side channel from a tool result."""
    raw = result.pop("__warnings__", None)
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, str)]
