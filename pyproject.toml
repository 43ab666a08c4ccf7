[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lanintercom"
version = "0.1.0"
description = "Push-to-talk voice intercom between two machines on the same local network"
requires-python = ">=3.10"
dependencies = [
    "pygame",
]
keywords = ["intercom", "voice", "audio", "lan", "push-to-talk", "udp", "tcp"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Internet Phone",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lanintercom = "lanintercom.app:main"

[tool.hatch.build.targets.wheel]
packages = ["lanintercom"]

[tool.pytest.ini_options]
addopts = "-ra"
