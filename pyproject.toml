[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mbslave"
version = "0.1.0"
description = "Modbus slave building blocks: RTU, ASCII and TCP framing, coil handlers and serial diagnostics"
requires-python = ">=3.10"
dependencies = []
keywords = ["modbus", "rtu", "ascii", "tcp", "slave", "crc16", "lrc", "coils", "diagnostics"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mbslave"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
