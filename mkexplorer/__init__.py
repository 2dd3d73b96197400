"""Makefile exploration: parse targets, variables and dependencies, and serve them as JSON-RPC tools."""

__version__ = "1.0.0"
__all__ = ["types", "parser", "server", "cli"]