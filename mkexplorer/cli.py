"""Line-delimited JSON-RPC loop serving Makefile tools on stdin/stdout."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, TextIO

from .server import Server, ToolError

INTERNAL_ERROR = -32603

log = logging.getLogger(__name__)


class _RequestError(Exception):
    pass


def _dispatch(server: Server, method: Any, params: Any) -> Any:
    if method == "initialize":
        return server.initialize(params)
    if method == "tools/list":
        return server.list_tools()
    if method == "tools/call":
        if not isinstance(params, dict):
            raise _RequestError("invalid params for tools/call")
        name = params.get("name") or ""
        if not isinstance(name, str):
            raise _RequestError("tool name must be a string")
        return server.call_tool(name, params.get("arguments"))
    raise _RequestError(f"unknown method: {method if method is not None else ''}")


def handle_request(server: Server, request: dict[str, Any]) -> dict[str, Any]:
    """Answer one decoded request with a JSON-RPC response object."""
    response: dict[str, Any] = {"jsonrpc": "2.0", "id": request.get("id")}
    try:
        response["result"] = _dispatch(server, request.get("method"), request.get("params"))
    except (ToolError, _RequestError) as exc:
        response["error"] = {"code": INTERNAL_ERROR, "message": str(exc)}
    return response


def _decode(line: str) -> dict[str, Any]:
    request = json.loads(line)
    if not isinstance(request, dict):
        raise ValueError("request must be a JSON object")
    for key in ("jsonrpc", "method"):
        if key in request and request[key] is not None and not isinstance(request[key], str):
            raise ValueError(f"field {key!r} must be a string")
    return request


def serve(server: Server, input_stream: TextIO, output_stream: TextIO) -> None:
    """Read requests line by line and write one response line for each."""
    for raw in input_stream:
        line = raw.rstrip("\n").rstrip("\r")
        if not line:
            continue
        try:
            request = _decode(line)
        except ValueError as exc:
            log.error("Failed to parse request: %s", exc)
            continue
        response = handle_request(server, request)
        output_stream.write(json.dumps(response, ensure_ascii=False, separators=(",", ":")))
        output_stream.write("\n")
        output_stream.flush()


def main(argv: list[str] | None = None) -> int:
    """Serve Makefile tools over standard input and output."""
    parser = argparse.ArgumentParser(
        prog="mkexplorer",
        description="Serve Makefile exploration tools as line-delimited JSON-RPC on stdin/stdout.",
    )
    parser.parse_args(argv)
    logging.basicConfig(stream=sys.stderr, format="%(message)s")
    try:
        serve(Server(), sys.stdin, sys.stdout)
    except OSError as exc:
        log.error("Error reading input: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())