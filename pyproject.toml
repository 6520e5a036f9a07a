[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "corrofem"
version = "0.1.0"
description = "Degree-of-freedom numbering, nodal constraints, time discretisation and stabilisation for finite element corrosion models"
requires-python = ">=3.10"
keywords = [
    "finite elements",
    "corrosion",
    "degrees of freedom",
    "constraints",
    "time integration",
    "Newmark",
    "SUPG",
    "stabilisation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Scientific/Engineering :: Mathematics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["corrofem"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
