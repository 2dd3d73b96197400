# mkexplorer

mkexplorer reads Makefiles and answers questions about them. It finds the
targets and their descriptions, the dependencies between targets and the
variables, and it can expand a variable to its full value. You can use it
as a library. You can also run it as a tool server that reads JSON-RPC
requests on standard input and writes one reply per line on standard output.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running the server

```
mkexplorer
```

The command takes no options other than `-h`/`--help`. Send one JSON-RPC
request per line. Blank lines are skipped. The server handles these methods:

- `initialize`: returns the protocol version, the server name and version,
  and the capabilities
- `tools/list`: returns each tool with its description and input schema
- `tools/call`: takes the `name` of a tool and its `arguments` object

The tools are:

| Tool               | Arguments                                                                          |
|--------------------|------------------------------------------------------------------------------------|
| `list_targets`     | `path` (optional, defaults to `Makefile`)                                          |
| `get_target`       | `target`, `path` (optional)                                                        |
| `get_dependencies` | `target`, `path` (optional), `max_depth` (0 or missing means 10)                   |
| `list_variables`   | `path` (optional), `include_env` (default false)                                   |
| `expand_variable`  | `variable`, `path` (optional)                                                      |
| `find_makefiles`   | `root` (default `.`), `pattern` (default `Makefile\|makefile\|GNUmakefile\|*.mk`)   |

Example session:

```
$ echo '{"jsonrpc":"2.0","id":1,"method":"tools/call","params":{"name":"get_target","arguments":{"target":"build"}}}' | mkexplorer
{"jsonrpc":"2.0","id":1,"result":{"name":"build",...}}
```

If a request fails, for example because of an unknown method or tool, a
missing target or a file that cannot be opened, the reply has an `error`
object with code `-32603` and a message in place of `result`. Lines that are
not valid JSON, or that are not a JSON object, are logged to standard error
and get no reply.

`find_makefiles` reports each file's `path`, `size`, and `modified` time
(local time, `YYYY-MM-DD HH:MM:SS`). It also reports `relative`, which is
the path relative to the current directory when the found path is absolute,
and an empty string otherwise. `list_variables` with `include_env` adds
every environment variable with type `environment` and line number `-1`.

## Using the library

```python
from mkexplorer.parser import Parser, ParserError, find_makefiles

parser = Parser()
makefile = parser.parse_file("Makefile")

for name, target in makefile.targets.items():
    print(name, target.dependencies, target.description, target.commands)

for name, variable in makefile.variables.items():
    print(name, variable.value, variable.kind.label())

print(parser.expand_variable("CFLAGS"))
print(parser.get_target_dependencies("all", 5))

graph = parser.build_dependency_graph()
print(graph.nodes["main.o"].dependents)

print(find_makefiles(".", ""))
```

`Parser.parse` takes any iterable of lines, such as an open file or an
`io.StringIO`. The data classes `Makefile`, `Target`, `Variable`,
`DependencyGraph`, `DependencyNode` and the `VariableType` enum live in
`mkexplorer.types`. Failures such as an unreadable file, an unknown target
or an unknown variable raise `ParserError`.

A target's description is taken from the last comment line before it, and a
target is marked phony when it was named in a `.PHONY` line before it.
Recipe lines are the tab-indented lines that follow a target. Lines ending
in a backslash are joined with the next line. Assignments with `=`, `:=`,
`?=` and `+=` are recorded with their kind, and `+=` appends to an earlier
value. `export NAME` marks a variable already defined as exported.
`include` and `-include` lines are listed in `Makefile.includes`.

Variable references `$(NAME)` and `${NAME}` are expanded recursively. When a
variable is not defined in the Makefile, a non-empty value from the
environment is used. A reference that cannot be resolved, including a
circular one, is left as it is.

The server can also be used directly:

```python
from mkexplorer.server import Server, ToolError

server = Server()
result = server.call_tool("list_targets", {"path": "Makefile"})
```

## What it does not do

mkexplorer only reads Makefiles. It does not run `make` or any recipe. It
does not read the files named by `include` lines. It does not interpret
conditionals, functions such as `$(wildcard ...)`, or pattern rules. The
server keeps each parsed Makefile in a cache for as long as it runs, so
`list_targets`, `get_target` and `list_variables` do not see later changes
to a file it has already read.