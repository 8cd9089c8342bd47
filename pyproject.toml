[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pgwirekit"
version = "0.1.0"
description = "PostgreSQL wire-protocol helpers: message buffers, protocol messages, connection options and SQL quoting"
requires-python = ">=3.10"
dependencies = []
keywords = ["postgresql", "postgres", "wire protocol", "dsn", "quoting"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pgwirekit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
