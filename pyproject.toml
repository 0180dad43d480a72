[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "albertcore"
version = "0.1.0"
description = "Core of a keyboard launcher: plugin registry with dependency ordering, RPC control socket, input history and XDG icon lookup"
requires-python = ">=3.10"
dependencies = []
keywords = ["launcher", "plugins", "rpc", "xdg", "icons", "topological-sort"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
albertcore = "albertcore.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["albertcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
