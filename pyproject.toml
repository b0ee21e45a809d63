[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bitsize"
version = "0.2.0"
description = "Declare bit-sized integers, enums and packed bitfield structs, and convert them to and from raw bits."
requires-python = ">=3.10"
dependencies = []
keywords = ["bitfield", "bits", "register", "packing", "arbitrary-int"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bitsize"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
