"""Pytest configuration applied to the entire test suite."""

from __future__ import annotations


# Step definitions must be registered before feature files are parsed so
# pytest-bdd can match scenario text regardless of which tests are collected.
pytest_plugins = [
    "tests.e2e.steps.launcher",
]
