"""
Pytest configuration and fixtures for cspforge tests.

This module provides shared fixtures used across unit and integration tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from cspforge.schema import EnvironmentOrigins, RuleSet


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def simple_rules() -> RuleSet:
    """Return a rule set of plain strings only."""
    return {
        "default-src": "'self'",
        "script-src": "'self'",
    }


@pytest.fixture
def environment_rules() -> RuleSet:
    """Return a rule set mixing plain strings and environment maps."""
    return {
        "default-src": "'self'",
        "script-src": EnvironmentOrigins(
            default="'self'",
            environments={
                "production": "'self' https://p.example.com",
                "staging": "'self' https://staging.example.com",
            },
        ),
        "img-src": EnvironmentOrigins(default="'self' data:"),
    }


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a complete configuration YAML for testing."""
    return """
report_type: strict
environments:
  - staging
  - production
rules:
  default-src: "'self'"
  script-src:
    default: "'self' 'nonce-{RANDOM}'"
    production: "'self' https://p.example.com"
    development: "'self' 'nonce-{RANDOM}' 'unsafe-eval'"
  frame-ancestors: "'none'"
nonces:
  nonce_template: "{RANDOM}"
  development_key: development
"""
