"""Shared fixtures for the test suite."""

from pathlib import Path

import pytest

from web_app_manifest import WebAppManifest, load_manifest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def parsed_manifest() -> WebAppManifest:
    """The full example manifest, parsed but not processed."""
    return load_manifest(FIXTURES / "parsing.webmanifest")


@pytest.fixture
def invalid_manifest() -> WebAppManifest:
    """A manifest in which almost every member has a bad value."""
    return load_manifest(FIXTURES / "invalid-values.webmanifest")
