[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "frontpanel"
version = "0.6.0"
description = "Configuration, records and window-manager module protocol for a desktop front panel"
requires-python = ">=3.10"
dependencies = []
keywords = ["front panel", "panelrc", "desktop", "window manager", "module protocol", "deskswitch"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment :: Window Managers :: Applets",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["frontpanel"]

[tool.hatch.build.targets.sdist]
include = ["frontpanel", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
files = ["frontpanel"]
