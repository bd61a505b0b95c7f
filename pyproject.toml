[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spcbrr"
version = "0.1.0"
description = "Encode, decode and inspect BRR (Bit Rate Reduced) SNES ADPCM audio samples."
requires-python = ">=3.10"
dependencies = []
keywords = ["brr", "snes", "adpcm", "spc700", "audio", "wav", "elf"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
brr = "spcbrr.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["spcbrr"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"
