[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vnengine"
version = "0.1.0"
description = "Visual novel toolkit: script events, verified image assets with an LRU cache, asset manifests and window configuration"
requires-python = ">=3.10"
keywords = ["visual novel", "game engine", "interactive fiction", "assets", "manifest"]
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
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pillow",
    "platformdirs",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pillow",
]

[project.scripts]
vnengine = "vnengine.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["vnengine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
