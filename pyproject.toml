[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "airbrakes"
version = "0.1.0"
description = "Rocket airbrake logic: flight-plan meshes, drag-area control, stepper actuation, event thresholds and persistent settings"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "rocketry",
    "airbrakes",
    "apogee control",
    "flight computer",
    "stepper motor",
    "eeprom",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["airbrakes"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
