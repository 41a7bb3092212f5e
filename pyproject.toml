[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "obkcore"
version = "0.1.0"
description = "Smart-plug and light-controller logic: pins, channels, buttons, commands, logging, settings, NTP and OTA writing"
requires-python = ">=3.10"
dependencies = []
keywords = ["home-automation", "smart-plug", "gpio", "relay", "pwm", "ntp", "ota", "button"]
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
    "Topic :: Home Automation",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["obkcore"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
