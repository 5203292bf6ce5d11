[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "srtlive"
version = "0.1.0"
description = "Building blocks for an SRT live streaming server: MPEG-TS inspection, ring buffers, timed TS playback, configuration files and relay helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["srt", "mpeg-ts", "live streaming", "relay", "video", "ring buffer", "configuration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["srtlive"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
