[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hdfswire"
version = "0.1.0"
description = "Wire-level building blocks for talking to HDFS namenodes and datanodes"
requires-python = ">=3.10"
dependencies = []
keywords = ["hdfs", "hadoop", "rpc", "datanode", "namenode", "filesystem", "crc32c"]
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
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hdfswire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
