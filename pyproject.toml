[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "framestages"
version = "0.1.0"
description = "Post-processing stages for camera frames: motion detection, negation and decoding of inference results"
requires-python = ">=3.10"
keywords = ["camera", "image-processing", "motion-detection", "object-detection", "pose-estimation", "tracking"]
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
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["framestages"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
