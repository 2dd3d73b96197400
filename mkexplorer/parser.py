"""Makefile parsing, variable expansion and dependency analysis."""

from __future__ import annotations

import fnmatch
import os
import re
import stat
from collections.abc import Iterable, Iterator

from .types import (
    DependencyGraph,
    DependencyNode,
    Makefile,
    Target,
    Variable,
    VariableType,
)

_TARGET_RE = re.compile(r"^([^#\s][^:=]*):(.*)$", re.ASCII)
_VARIABLE_RE = re.compile(
    r"^([A-Za-z_][A-Za-z0-9_]*)\s*([?:+]?=)\s*(.*)$", re.ASCII
)
_INCLUDE_RE = re.compile(r"^-?include\s+(.+)$", re.ASCII)
_EXPORT_RE = re.compile(r"^export\s+([A-Za-z_][A-Za-z0-9_]*)", re.ASCII)
_PHONY_RE = re.compile(r"^\.PHONY:\s*(.*)$", re.ASCII)
_VAR_REF_RE = re.compile(r"\$\(([^)]+)\)|\$\{([^}]+)\}")

_ASSIGNMENT_KINDS = {
    "=": VariableType.SIMPLE,
    ":=": VariableType.RECURSIVE,
    "?=": VariableType.CONDITIONAL,
    "+=": VariableType.APPEND,
}

DEFAULT_PATTERN = "Makefile|makefile|GNUmakefile|*.mk"


class ParserError(Exception):
    """Raised when a Makefile cannot be read or queried."""


def _chomp(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


class Parser:
    """Collects targets, variables and includes from Makefile text."""

    def __init__(self) -> None:
        self.makefile = Makefile()
        self.phony: set[str] = set()

    def parse_file(self, path: str) -> Makefile:
        """Parse the Makefile at ``path`` and return the accumulated result."""
        try:
            stream = open(path, encoding="utf-8", errors="replace", newline="")
        except OSError as exc:
            raise ParserError(f"failed to open file: {exc}") from exc
        with stream:
            self.makefile.path = str(path)
            try:
                return self.parse(stream)
            except OSError as exc:
                raise ParserError(f"error reading file: {exc}") from exc

    def parse(self, stream: Iterable[str]) -> Makefile:
        """Parse Makefile lines from ``stream`` into this parser's Makefile."""
        makefile = self.makefile
        current: Target | None = None
        last_comment = ""
        continued = ""

        for line_number, raw_line in enumerate(stream, start=1):
            raw = _chomp(raw_line)

            if raw.endswith("\\"):
                continued += raw[:-1] + " "
                continue
            line = raw
            if continued:
                line = continued + raw
                continued = ""

            line = line.strip()
            if not line:
                current = None
                continue

            if line.startswith("#"):
                last_comment = line[1:].strip()
                continue

            if match := _PHONY_RE.match(line):
                self.phony.update(match.group(1).split())
                continue

            if match := _INCLUDE_RE.match(line):
                makefile.includes.extend(match.group(1).split())
                continue

            if match := _EXPORT_RE.match(line):
                existing = makefile.variables.get(match.group(1))
                if existing is not None:
                    existing.is_exported = True
                continue

            if match := _VARIABLE_RE.match(line):
                name, operator, value = match.groups()
                kind = _ASSIGNMENT_KINDS[operator]
                if kind is VariableType.APPEND and name in makefile.variables:
                    value = f"{makefile.variables[name].value} {value}"
                makefile.variables[name] = Variable(
                    name=name, value=value, kind=kind, line_number=line_number
                )
                current = None
                continue

            if match := _TARGET_RE.match(line):
                names = match.group(1).split()
                deps = match.group(2).split()
                for name in names:
                    target = Target(
                        name=name,
                        dependencies=list(deps),
                        is_phony=name in self.phony,
                        description=last_comment,
                        line_number=line_number,
                    )
                    makefile.targets[name] = target
                    current = target
                last_comment = ""
                continue

            if current is not None and raw.startswith("\t"):
                current.commands.append(raw[1:])
                continue

            current = None

        return makefile

    def expand_variable(self, name: str) -> str:
        """Return the value of ``name`` with all variable references resolved."""
        return self._expand(name, set())

    def _expand(self, name: str, visited: set[str]) -> str:
        if name in visited:
            raise ParserError(f"circular reference detected for variable: {name}")

        variable = self.makefile.variables.get(name)
        if variable is None:
            env_value = os.environ.get(name, "")
            if env_value:
                return env_value
            raise ParserError(f"variable not found: {name}")

        visited.add(name)
        try:

            def replace(match: re.Match[str]) -> str:
                reference = match.group(0)
                try:
                    return self._expand(reference[2:-1], visited)
                except ParserError:
                    return reference

            return _VAR_REF_RE.sub(replace, variable.value)
        finally:
            visited.discard(name)

    def build_dependency_graph(self) -> DependencyGraph:
        """Build forward and reverse dependency edges for every target."""
        graph = DependencyGraph()
        for name, target in self.makefile.targets.items():
            graph.nodes[name] = DependencyNode(
                name=name, dependencies=list(target.dependencies)
            )
        for name, node in graph.nodes.items():
            for dep in node.dependencies:
                dep_node = graph.nodes.get(dep)
                if dep_node is not None:
                    dep_node.dependents.append(name)
        return graph

    def get_target_dependencies(self, target_name: str, max_depth: int) -> list[str]:
        """Collect the transitive prerequisites of a target, depth first."""
        targets = self.makefile.targets
        if target_name not in targets:
            raise ParserError(f"target not found: {target_name}")

        visited: set[str] = set()
        deps: list[str] = []

        def collect(name: str, depth: int) -> None:
            if depth > max_depth or name in visited:
                return
            visited.add(name)
            target = targets.get(name)
            if target is None:
                return
            for dep in target.dependencies:
                if dep not in visited:
                    deps.append(dep)
                    collect(dep, depth + 1)

        collect(target_name, 0)
        return deps


def _walk(path: str) -> Iterator[str]:
    info = os.lstat(path)
    if not stat.S_ISDIR(info.st_mode):
        yield path
        return
    for name in sorted(os.listdir(path)):
        yield from _walk(os.path.normpath(os.path.join(path, name)))


def find_makefiles(root: str = ".", pattern: str = "") -> list[str]:
    """Return files under ``root`` whose names match a ``|``-separated pattern."""
    patterns = (pattern or DEFAULT_PATTERN).split("|")
    found = []
    for path in _walk(str(root)):
        base = os.path.basename(path)
        if any(fnmatch.fnmatchcase(base, p) or base == p for p in patterns):
            found.append(path)
    return found