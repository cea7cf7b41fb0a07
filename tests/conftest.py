"""Pytest configuration and fixtures."""

import shutil
from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixture_path():
    """Return the path of a fixture file by name."""
    return lambda name: FIXTURES_DIR / name


@pytest.fixture
def package_json(tmp_path):
    """Copy of the sample package.json that tests may rewrite."""
    target = tmp_path / "package.json"
    shutil.copyfile(FIXTURES_DIR / "package.json", target)
    return target


@pytest.fixture
def package_json_multiple_locations(tmp_path):
    """Copy of a package.json declaring shelljs in all three dependency kinds."""
    target = tmp_path / "package.json"
    shutil.copyfile(FIXTURES_DIR / "package_multiple_locations.json", target)
    return target


@pytest.fixture
def sample_package_json():
    """Sample package.json content for testing."""
    return """{
  "name": "test-project",
  "dependencies": {
    "express": "^4.18.0",
    "lodash": "~4.17.21"
  },
  "devDependencies": {
    "jest": "^29.0.0"
  }
}
"""
