[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gossipsim"
version = "0.1.0"
description = "Discrete-time simulator of a gossip-style heartbeat membership protocol over an emulated network"
requires-python = ">=3.10"
dependencies = []
keywords = ["gossip", "membership", "failure detection", "heartbeat", "simulation", "distributed systems"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gossipsim = "gossipsim.application:main"

[tool.hatch.build.targets.wheel]
packages = ["gossipsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
