[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "paygate"
version = "0.1.0"
description = "Payment gateway and in-memory payment ledger served over Unix domain sockets"
requires-python = ">=3.11"
keywords = ["payments", "gateway", "aiohttp", "unix-socket", "ledger"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "aiohttp>=3.9",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[project.scripts]
paygate-gateway = "paygate.gateway:main"
paygate-database = "paygate.database:main"

[tool.hatch.build.targets.wheel]
packages = ["paygate"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
