"""Tool server exposing Makefile exploration over a request/response API."""

from __future__ import annotations

import copy
import os
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .parser import Parser, ParserError, find_makefiles
from .types import Makefile

SERVER_NAME = "mcp-server-makefile"
SERVER_VERSION = "1.0.0"
PROTOCOL_VERSION = "1.0"
DEFAULT_MAKEFILE = "Makefile"
DEFAULT_MAX_DEPTH = 10

_PATH_OPTIONAL = {"type": "string", "description": "Path to the Makefile (optional)"}
_TARGET_NAME = {"type": "string", "description": "Target name"}

_TOOLS: list[dict[str, Any]] = [
    {
        "name": "list_targets",
        "description": "List all targets in the Makefile",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": {
                    "type": "string",
                    "description": "Path to the Makefile (optional, defaults to ./Makefile)",
                },
            },
        },
    },
    {
        "name": "get_target",
        "description": "Get detailed information about a specific target",
        "inputSchema": {
            "type": "object",
            "properties": {"target": _TARGET_NAME, "path": _PATH_OPTIONAL},
            "required": ["target"],
        },
    },
    {
        "name": "get_dependencies",
        "description": "Get dependency graph for a target",
        "inputSchema": {
            "type": "object",
            "properties": {
                "target": _TARGET_NAME,
                "path": _PATH_OPTIONAL,
                "max_depth": {
                    "type": "integer",
                    "description": "Maximum dependency depth (optional)",
                },
            },
            "required": ["target"],
        },
    },
    {
        "name": "list_variables",
        "description": "List all variables defined in the Makefile",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH_OPTIONAL,
                "include_env": {
                    "type": "boolean",
                    "description": "Include environment variables (default: false)",
                },
            },
        },
    },
    {
        "name": "expand_variable",
        "description": "Expand a variable to its full value",
        "inputSchema": {
            "type": "object",
            "properties": {
                "variable": {"type": "string", "description": "Variable name"},
                "path": _PATH_OPTIONAL,
            },
            "required": ["variable"],
        },
    },
    {
        "name": "find_makefiles",
        "description": "Find all Makefiles in the project",
        "inputSchema": {
            "type": "object",
            "properties": {
                "root": {
                    "type": "string",
                    "description": "Root directory to search (optional, defaults to current directory)",
                },
                "pattern": {
                    "type": "string",
                    "description": "File pattern to match (optional, defaults to common Makefile names)",
                },
            },
        },
    },
]


class ToolError(Exception):
    """Raised when a tool call cannot be carried out."""


def _arg(args: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = args.get(key)
    if value is None:
        return default
    wrong_bool = kind is not bool and isinstance(value, bool)
    if not isinstance(value, kind) or wrong_bool:
        raise ToolError(f"invalid value for {key!r}: expected {kind.__name__}")
    return value


def _relative(base: str, path: str) -> str:
    if not os.path.isabs(path):
        return ""
    try:
        return os.path.relpath(path, base)
    except ValueError:
        return ""


class Server:
    """Answers tool calls about Makefiles, caching each parsed file by path."""

    def __init__(self) -> None:
        self._parser = Parser()
        self._cache: dict[str, Makefile] = {}
        self._handlers: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
            "list_targets": self._list_targets,
            "get_target": self._get_target,
            "get_dependencies": self._get_dependencies,
            "list_variables": self._list_variables,
            "expand_variable": self._expand_variable,
            "find_makefiles": self._find_makefiles,
        }

    def initialize(self, params: Any = None) -> dict[str, Any]:
        """Describe the server and its capabilities."""
        return {
            "protocolVersion": PROTOCOL_VERSION,
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            "capabilities": {"tools": {"available": True}},
        }

    def list_tools(self) -> dict[str, Any]:
        """Return the descriptions and input schemas of every tool."""
        return {"tools": copy.deepcopy(_TOOLS)}

    def call_tool(self, name: str, arguments: Any = None) -> dict[str, Any]:
        """Run the tool called ``name`` with the given argument object."""
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolError(f"unknown tool: {name}")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolError("tool arguments must be an object")
        try:
            return handler(arguments)
        except ParserError as exc:
            raise ToolError(str(exc)) from exc

    def _makefile(self, path: str) -> Makefile:
        path = path or DEFAULT_MAKEFILE
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        makefile = self._parser.parse_file(path)
        self._cache[path] = makefile
        return makefile

    def _fresh_parser(self, makefile: Makefile) -> Parser:
        self._parser = Parser()
        try:
            self._parser.parse_file(makefile.path)
        except ParserError:
            pass
        return self._parser

    def _list_targets(self, args: dict[str, Any]) -> dict[str, Any]:
        makefile = self._makefile(_arg(args, "path", str, ""))
        targets = [
            {
                "name": name,
                "description": target.description,
                "dependencies": list(target.dependencies),
                "isPhony": target.is_phony,
                "lineNumber": target.line_number,
            }
            for name, target in makefile.targets.items()
        ]
        return {"targets": targets}

    def _get_target(self, args: dict[str, Any]) -> dict[str, Any]:
        name = _arg(args, "target", str, "")
        makefile = self._makefile(_arg(args, "path", str, ""))
        target = makefile.targets.get(name)
        if target is None:
            raise ToolError(f"target not found: {name}")
        return {
            "name": target.name,
            "description": target.description,
            "dependencies": list(target.dependencies),
            "commands": list(target.commands),
            "isPhony": target.is_phony,
            "lineNumber": target.line_number,
        }

    def _get_dependencies(self, args: dict[str, Any]) -> dict[str, Any]:
        name = _arg(args, "target", str, "")
        max_depth = _arg(args, "max_depth", int, 0) or DEFAULT_MAX_DEPTH
        makefile = self._makefile(_arg(args, "path", str, ""))

        parser = self._fresh_parser(makefile)
        deps = parser.get_target_dependencies(name, max_depth)
        node = parser.build_dependency_graph().nodes.get(name)
        if node is None:
            raise ToolError(f"target not found in dependency graph: {name}")
        return {
            "target": name,
            "dependencies": deps,
            "graph": {
                "directDependencies": list(node.dependencies),
                "dependents": list(node.dependents),
            },
        }

    def _list_variables(self, args: dict[str, Any]) -> dict[str, Any]:
        makefile = self._makefile(_arg(args, "path", str, ""))
        include_env = _arg(args, "include_env", bool, False)
        variables = [
            {
                "name": name,
                "value": variable.value,
                "type": variable.kind.label(),
                "isExported": variable.is_exported,
                "lineNumber": variable.line_number,
            }
            for name, variable in makefile.variables.items()
        ]
        if include_env:
            variables.extend(
                {
                    "name": name,
                    "value": value,
                    "type": "environment",
                    "isExported": True,
                    "lineNumber": -1,
                }
                for name, value in os.environ.items()
            )
        return {"variables": variables}

    def _expand_variable(self, args: dict[str, Any]) -> dict[str, Any]:
        name = _arg(args, "variable", str, "")
        makefile = self._makefile(_arg(args, "path", str, ""))
        expanded = self._fresh_parser(makefile).expand_variable(name)
        variable = makefile.variables.get(name)
        return {
            "variable": name,
            "original": variable.value if variable is not None else "",
            "expanded": expanded,
        }

    def _find_makefiles(self, args: dict[str, Any]) -> dict[str, Any]:
        root = _arg(args, "root", str, "") or "."
        pattern = _arg(args, "pattern", str, "")
        try:
            paths = find_makefiles(root, pattern)
        except OSError as exc:
            raise ToolError(str(exc)) from exc

        cwd = os.getcwd()
        results = []
        for path in paths:
            info = os.stat(path)
            results.append(
                {
                    "path": path,
                    "relative": _relative(cwd, path),
                    "size": info.st_size,
                    "modified": datetime.fromtimestamp(info.st_mtime).strftime(
                        "%Y-%m-%d %H:%M:%S"
                    ),
                }
            )
        return {"makefiles": results, "count": len(results)}