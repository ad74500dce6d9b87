"""
Pytest configuration and shared fixtures for schemagen tests.
"""

from pathlib import Path

import pytest

from schemagen import generate_validator, validate
from schemagen.config.settings import SchemaConfig, reset_config


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep tests independent of the caller's SCHEMAGEN_* settings."""
    for name in (
        "SCHEMAGEN_MAX_DEPTH",
        "SCHEMAGEN_ASSERT_FORMATS",
        "SCHEMAGEN_DISABLED_KEYWORDS",
        "SCHEMAGEN_SUITE_DIR",
        "SCHEMAGEN_REMOTES_DIR",
        "DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def suite_dir():
    return FIXTURES_DIR / "draft7"


@pytest.fixture
def remotes_dir():
    return FIXTURES_DIR / "remotes"


@pytest.fixture
def check():
    """Compile a schema and return a one-argument predicate over instances."""

    def _check(schema, config=None, **kwargs):
        node = generate_validator(schema, config=config or SchemaConfig(), **kwargs)
        return lambda instance: validate(node, instance)

    return _check
