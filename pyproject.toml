[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minipgw"
version = "0.1.0"
description = "A minimal packet gateway: UDP session creation by IMSI, CDR logging and an HTTP control API"
requires-python = ">=3.10"
dependencies = []
keywords = ["pgw", "imsi", "cdr", "telecom", "udp", "session"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: No Input/Output (Daemon)",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Telephony",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
minipgw = "minipgw.app:main"

[tool.hatch.build.targets.wheel]
packages = ["minipgw"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
