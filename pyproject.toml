[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pcpatch"
version = "0.1.0"
description = "Point cloud points, uncompressed patches and per-dimension byte arrays with run-length, significant-bit and deflate compression"
requires-python = ">=3.10"
dependencies = []
keywords = ["point cloud", "lidar", "compression", "wkb", "gis", "run-length"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: GIS",
    "Topic :: System :: Archiving :: Compression",
]

[project.optional-dependencies]
test = ["pytest", "hypothesis"]

[tool.hatch.build.targets.wheel]
packages = ["pcpatch"]

[tool.pytest.ini_options]
addopts = "-ra"
