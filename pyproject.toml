[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evcontrol"
version = "0.1.0"
description = "Vehicle control unit logic for an electric conversion: BMS, on-board charger, DC-DC and climate over CAN"
requires-python = ">=3.10"
dependencies = []
keywords = ["can", "bms", "vehicle", "charger", "embedded", "ev"]
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
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["evcontrol"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
