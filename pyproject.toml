[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uedit"
version = "4.0.0"
description = "The core of a small MicroEMACS-style text editor: line buffers, kill buffer, regions, keyboard macros, key decoding and file locking"
requires-python = ">=3.10"
dependencies = []
keywords = ["editor", "emacs", "microemacs", "terminal", "text"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Editors",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
uedit = "uedit.main:main"

[tool.hatch.build.targets.wheel]
packages = ["uedit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
