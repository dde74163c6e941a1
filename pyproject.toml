[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "diagnostica"
version = "0.1.0"
description = "Rich, human-friendly diagnostic reports with source snippets, labels and cause chains"
requires-python = ">=3.10"
dependencies = [
    "wcwidth",
]
keywords = ["diagnostics", "errors", "error-reporting", "source-spans", "terminal"]
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
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["diagnostica"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
