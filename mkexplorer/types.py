"""Data model for parsed Makefiles and their dependency graphs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class VariableType(Enum):
    """How a variable was assigned in the Makefile."""

    SIMPLE = "simple"  # VAR = value
    RECURSIVE = "recursive"  # VAR := value
    CONDITIONAL = "conditional"  # VAR ?= value
    APPEND = "append"  # VAR += value

    def label(self) -> str:
        """Return the short name used when reporting this assignment kind."""
        return self.value


@dataclass
class Target:
    """A rule target with its prerequisites and recipe lines."""

    name: str
    dependencies: list[str] = field(default_factory=list)
    commands: list[str] = field(default_factory=list)
    is_phony: bool = False
    description: str = ""
    line_number: int = 0


@dataclass
class Variable:
    """A variable assignment found in a Makefile."""

    name: str
    value: str = ""
    is_exported: bool = False
    is_override: bool = False
    line_number: int = 0
    kind: VariableType = VariableType.SIMPLE


@dataclass
class Makefile:
    """Everything collected from one parsed Makefile."""

    path: str = ""
    targets: dict[str, Target] = field(default_factory=dict)
    variables: dict[str, Variable] = field(default_factory=dict)
    includes: list[str] = field(default_factory=list)


@dataclass
class DependencyNode:
    """A target in the dependency graph with its forward and reverse edges."""

    name: str
    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)


@dataclass
class DependencyGraph:
    """Dependency graph over all targets of a Makefile."""

    nodes: dict[str, DependencyNode] = field(default_factory=dict)