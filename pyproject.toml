[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dockkit"
version = "0.1.0"
description = "Kinematic tree utilities for flexible molecular docking and a multi-model PDBQT splitter"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["docking", "pdbqt", "molecular modeling", "torsions", "kinematics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Chemistry",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
dockkit-split = "dockkit.split:main"

[tool.hatch.build.targets.wheel]
packages = ["dockkit"]

[tool.pytest.ini_options]
addopts = "-ra"
