[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "evanscli"
version = "0.1.0"
description = "Command-line pieces for a gRPC client: flag parsing, layered TOML config, a cache file, update checks and usage text."
requires-python = ">=3.11"
keywords = ["grpc", "cli", "config", "toml", "usage"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]
dependencies = [
    "tomli-w",
    "packaging",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["evanscli"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
