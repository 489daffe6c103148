[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "airkit"
version = "0.1.0"
description = "Service building blocks: request context, configuration, locks, caches, rate limiters and HTTP request types"
requires-python = ">=3.11"
keywords = [
    "rate-limiter",
    "leaky-bucket",
    "token-bucket",
    "sliding-window",
    "sliding-log",
    "cache",
    "lock",
    "redis",
    "configuration",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]
dependencies = [
    "pyyaml",
    "xmltodict",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["airkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
