[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tlskit"
version = "0.1.0"
description = "TLS key schedule, PRF, key agreement, session ticket and certificate helpers"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["tls", "prf", "hkdf", "key-schedule", "ecdhe", "session-ticket", "x509"]
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
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tlskit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
