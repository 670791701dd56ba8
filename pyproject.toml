[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cloudnuke"
version = "0.1.0"
description = "Find and delete stale cloud resources such as S3 buckets, secrets, snapshots, SQS queues and transit gateways."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["cloud", "cleanup", "s3", "sqs", "secrets-manager", "transit-gateway", "snapshots"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["cloudnuke"]

[tool.hatch.build.targets.sdist]
include = ["cloudnuke", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
