[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "upjet"
version = "0.1.0"
description = "Resource configuration toolkit for generating managed-resource providers from Terraform provider schemas"
requires-python = ">=3.10"
dependencies = []
keywords = ["terraform", "crossplane", "code generation", "provider", "external name"]
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
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["upjet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
