[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lrzkit"
version = "0.1.0"
description = "Long-range redundancy encoding in pure Python: rzip match search, chunk encoding and decoding, MD5/SHA-512 digests, LZMA property helpers and option parsing"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "compression",
    "rzip",
    "long-range",
    "deduplication",
    "md5",
    "sha512",
    "lzma",
]
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
    "Topic :: System :: Archiving :: Compression",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lrzkit"]

[tool.hatch.build.targets.sdist]
include = ["lrzkit", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
