[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "champsim"
version = "0.1.0"
description = "Building blocks of a trace-driven microarchitecture simulator: trace formats, trace readers, decompression, feed files and a CVP-1 trace converter"
requires-python = ">=3.10"
dependencies = []
keywords = ["simulator", "microarchitecture", "trace", "instruction trace", "cvp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cvp2champsim = "champsim.cvp2champsim:main"

[tool.hatch.build.targets.wheel]
packages = ["champsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
