[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "y86tools"
version = "0.1.0"
description = "Assembler, instruction-set simulator and HCL code generation for the Y86-64 teaching architecture"
requires-python = ">=3.10"
dependencies = []
keywords = ["y86", "y86-64", "assembler", "simulator", "emulator", "hcl", "computer-architecture"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: Software Development :: Assemblers",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
yas = "y86tools.yas:main"
yis = "y86tools.yis:main"

[tool.hatch.build.targets.wheel]
packages = ["y86tools"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
