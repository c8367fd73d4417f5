[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dronecoord"
version = "0.1.0"
description = "Emergency drone coordination: a grid world of survivors, a TCP server that assigns rescue missions to drones, a drone client and a live map view."
requires-python = ">=3.10"
keywords = ["drone", "simulation", "coordination", "rescue", "json", "tcp", "pygame"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
    "Topic :: Games/Entertainment :: Simulation",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
dronecoord-server = "dronecoord.controller:main"
dronecoord-drone = "dronecoord.client:main"

[tool.hatch.build.targets.wheel]
packages = ["dronecoord"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
