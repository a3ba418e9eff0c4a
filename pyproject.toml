[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fieldlink"
version = "0.1.0"
description = "Pure-Python Modbus RTU master and framing, CRC-16, and infrared remote code encoders and decoders"
requires-python = ">=3.10"
dependencies = []
keywords = ["modbus", "rtu", "crc16", "infrared", "ir-remote", "nec", "sony", "rc5", "rc6", "samsung"]
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
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fieldlink"]

[tool.pytest.ini_options]
addopts = "-ra"
