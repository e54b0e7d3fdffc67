[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "samlkit"
version = "0.1.0"
description = "SAML 2.0 protocol and assertion objects that build and read their XML form"
requires-python = ">=3.10"
dependencies = []
keywords = ["saml", "saml2", "sso", "xml", "authentication", "identity"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration :: Authentication/Directory",
    "Topic :: Text Processing :: Markup :: XML",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["samlkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
