[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "healthchain"
version = "0.1.0"
description = "In-memory state machine for anchoring health records, IPFS pinning, consent-based access control and encryption key management"
requires-python = ">=3.10"
dependencies = []
keywords = ["health records", "ipfs", "access control", "encryption keys", "ledger", "state machine"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Healthcare Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["healthchain*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
