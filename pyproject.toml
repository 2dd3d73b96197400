[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mkexplorer"
version = "1.0.0"
description = "Explore Makefiles (targets, variables, dependencies) through a line-delimited JSON-RPC tool server"
requires-python = ">=3.10"
dependencies = []
keywords = ["makefile", "make", "json-rpc", "mcp", "build", "dependencies"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mkexplorer = "mkexplorer.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mkexplorer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
