import os

import pytest

from mkexplorer.server import Server, ToolError

SIMPLE_MK = (
    "# Simple test Makefile\n"
    "CC := gcc\n"
    "CFLAGS := -Wall -O2\n"
    "\n"
    ".PHONY: all clean\n"
    "\n"
    "# Build all targets\n"
    "all: build test\n"
    "\n"
    "# Build the application\n"
    "build: main.o utils.o\n"
    "\t$(CC) $(CFLAGS) -o app main.o utils.o\n"
    "\n"
    "main.o: main.c\n"
    "\t$(CC) $(CFLAGS) -c main.c\n"
    "\n"
    "utils.o: utils.c utils.h\n"
    "\t$(CC) $(CFLAGS) -c utils.c\n"
    "\n"
    "# Run tests\n"
    "test:\n"
    "\t./test.sh\n"
    "\n"
    "# Clean build artifacts\n"
    "clean:\n"
    "\trm -f *.o app\n"
)


@pytest.fixture
def makefile_path(tmp_path):
    path = tmp_path / "simple.mk"
    path.write_text(SIMPLE_MK)
    return str(path)


def test_initialize_reports_server_info():
    info = Server().initialize({})
    assert info["serverInfo"] == {"name": "mcp-server-makefile", "version": "1.0.0"}
    assert info["capabilities"]["tools"]["available"] is True


def test_list_tools_names():
    tools = Server().list_tools()["tools"]
    assert [tool["name"] for tool in tools] == [
        "list_targets",
        "get_target",
        "get_dependencies",
        "list_variables",
        "expand_variable",
        "find_makefiles",
    ]
    required = {t["name"]: t["inputSchema"].get("required") for t in tools}
    assert required["get_target"] == ["target"]
    assert required["expand_variable"] == ["variable"]


def test_list_targets(makefile_path):
    result = Server().call_tool("list_targets", {"path": makefile_path})
    by_name = {t["name"]: t for t in result["targets"]}
    assert set(by_name) == {"all", "build", "main.o", "utils.o", "test", "clean"}
    assert by_name["build"]["description"] == "Build the application"
    assert by_name["all"]["isPhony"] is True
    assert by_name["main.o"]["isPhony"] is False


def test_list_targets_defaults_to_makefile_in_cwd(tmp_path, monkeypatch):
    (tmp_path / "Makefile").write_text(SIMPLE_MK)
    monkeypatch.chdir(tmp_path)
    result = Server().call_tool("list_targets", {})
    assert len(result["targets"]) == 6


def test_results_are_cached(makefile_path):
    server = Server()
    first = server.call_tool("list_targets", {"path": makefile_path})
    with open(makefile_path, "w") as handle:
        handle.write("only:\n")
    second = server.call_tool("list_targets", {"path": makefile_path})
    assert first == second


def test_get_target(makefile_path):
    result = Server().call_tool("get_target", {"target": "build", "path": makefile_path})
    assert result["dependencies"] == ["main.o", "utils.o"]
    assert result["commands"] == ["$(CC) $(CFLAGS) -o app main.o utils.o"]
    assert result["name"] == "build"


def test_get_target_missing(makefile_path):
    with pytest.raises(ToolError, match="target not found: nope"):
        Server().call_tool("get_target", {"target": "nope", "path": makefile_path})


def test_get_dependencies(makefile_path):
    result = Server().call_tool(
        "get_dependencies", {"target": "all", "path": makefile_path}
    )
    assert result["target"] == "all"
    assert {"build", "test", "main.o", "utils.o"} <= set(result["dependencies"])
    assert result["graph"]["directDependencies"] == ["build", "test"]
    assert result["graph"]["dependents"] == []


def test_get_dependencies_reverse_edges(makefile_path):
    result = Server().call_tool(
        "get_dependencies", {"target": "main.o", "path": makefile_path}
    )
    assert result["graph"]["dependents"] == ["build"]


def test_get_dependencies_unknown_target(makefile_path):
    with pytest.raises(ToolError, match="target not found"):
        Server().call_tool("get_dependencies", {"target": "x", "path": makefile_path})


def test_list_variables(makefile_path):
    result = Server().call_tool("list_variables", {"path": makefile_path})
    by_name = {v["name"]: v for v in result["variables"]}
    assert set(by_name) == {"CC", "CFLAGS"}
    assert by_name["CC"]["value"] == "gcc"
    assert by_name["CC"]["type"] == "recursive"
    assert by_name["CC"]["isExported"] is False


def test_list_variables_with_environment(makefile_path, monkeypatch):
    monkeypatch.setenv("MKEXPLORER_SAMPLE", "sample-value")
    result = Server().call_tool(
        "list_variables", {"path": makefile_path, "include_env": True}
    )
    env = [v for v in result["variables"] if v["name"] == "MKEXPLORER_SAMPLE"]
    assert env == [
        {
            "name": "MKEXPLORER_SAMPLE",
            "value": "sample-value",
            "type": "environment",
            "isExported": True,
            "lineNumber": -1,
        }
    ]


def test_expand_variable(tmp_path):
    path = tmp_path / "vars.mk"
    path.write_text("BASE = /usr/local\nDIR = $(BASE)/bin\n")
    result = Server().call_tool("expand_variable", {"variable": "DIR", "path": str(path)})
    assert result == {
        "variable": "DIR",
        "original": "$(BASE)/bin",
        "expanded": "/usr/local/bin",
    }


def test_expand_variable_missing(makefile_path, monkeypatch):
    monkeypatch.delenv("MKEXPLORER_ABSENT", raising=False)
    with pytest.raises(ToolError, match="variable not found"):
        Server().call_tool(
            "expand_variable", {"variable": "MKEXPLORER_ABSENT", "path": makefile_path}
        )


def test_find_makefiles_absolute_root(tmp_path, monkeypatch):
    (tmp_path / "Makefile").write_text("all:\n")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "rules.mk").write_text("x:\n")
    (sub / "notes.txt").write_text("hello")
    monkeypatch.chdir(tmp_path)
    result = Server().call_tool("find_makefiles", {"root": str(tmp_path)})
    assert result["count"] == len(result["makefiles"]) == 2
    relatives = sorted(m["relative"] for m in result["makefiles"])
    assert relatives == sorted(["Makefile", os.path.join("sub", "rules.mk")])
    sizes = {m["relative"]: m["size"] for m in result["makefiles"]}
    assert sizes["Makefile"] == len("all:\n")


def test_find_makefiles_relative_root(tmp_path, monkeypatch):
    (tmp_path / "GNUmakefile").write_text("all:\n")
    monkeypatch.chdir(tmp_path)
    result = Server().call_tool("find_makefiles", {})
    assert [m["path"] for m in result["makefiles"]] == ["GNUmakefile"]
    assert result["makefiles"][0]["relative"] == ""


def test_find_makefiles_missing_root(tmp_path):
    with pytest.raises(ToolError):
        Server().call_tool("find_makefiles", {"root": str(tmp_path / "absent")})


def test_missing_file_is_tool_error(tmp_path):
    with pytest.raises(ToolError, match="failed to open file"):
        Server().call_tool("list_targets", {"path": str(tmp_path / "none.mk")})


def test_unknown_tool():
    with pytest.raises(ToolError, match="unknown tool: frobnicate"):
        Server().call_tool("frobnicate", {})


def test_wrong_argument_type():
    with pytest.raises(ToolError, match="path"):
        Server().call_tool("list_targets", {"path": 5})