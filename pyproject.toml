[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "modbusrelay"
version = "0.1.0"
description = "Modbus-TCP relay that pairs indicator devices with per-device PLC listening ports"
requires-python = ">=3.10"
dependencies = []
keywords = ["modbus", "modbus-tcp", "relay", "plc", "indicator", "proxy"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Manufacturing",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
modbusrelay = "modbusrelay.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["modbusrelay"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
