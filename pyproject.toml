[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "watchwallet"
version = "0.1.0"
description = "Bitcoin testnet faucet and address watcher backed by a node's JSON-RPC interface"
requires-python = ">=3.10"
keywords = ["bitcoin", "testnet", "faucet", "wallet", "json-rpc", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
]
dependencies = [
    "cryptography",
    "pycryptodome",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
faucet = "watchwallet.faucet:main"
watchwallet-watcher = "watchwallet.watcher:main"

[tool.hatch.build.targets.wheel]
packages = ["watchwallet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
