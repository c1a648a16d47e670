[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lineedit"
version = "0.1.0"
description = "Building blocks for terminal line editing: undo history, input validation, key decoding and rendering"
requires-python = ">=3.10"
keywords = ["readline", "line-editing", "terminal", "undo", "escape-sequences", "ansi"]
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
    "Topic :: Terminals",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "regex",
    "wcwidth",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["lineedit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
