[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fdwrap"
version = "0.1.0"
description = "Create sockets, duplicated descriptors and epoll objects with close-on-exec set, falling back when the atomic request is unsupported"
requires-python = ">=3.10"
dependencies = []
keywords = ["cloexec", "file descriptor", "socket", "epoll", "scm_rights", "posix"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Operating System",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fdwrap"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
