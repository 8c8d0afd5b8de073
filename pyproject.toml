[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "plancktui"
version = "0.1.0"
description = "Terminal workspace components: markdown editor buffer, file tree, dialogs, tmux agent sessions and a SQLite session store"
requires-python = ">=3.10"
dependencies = []
keywords = ["terminal", "tui", "markdown", "editor", "tmux", "sessions", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Editors",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["plancktui"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
