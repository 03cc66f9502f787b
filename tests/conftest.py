"""
Pytest configuration and fixtures for Gatekeeper tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from gatekeeper.policy import PolicyEngine
from gatekeeper.schema import DEFAULT_SECURITY_CONFIG, SecurityConfig


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> str:
    """Project root used by the path guard tests."""
    return "/home/user/project"


@pytest.fixture
def default_config() -> SecurityConfig:
    """The built-in security config."""
    return DEFAULT_SECURITY_CONFIG


@pytest.fixture
def engine(project_root: str) -> PolicyEngine:
    """Engine over the default config with a project root."""
    return PolicyEngine(DEFAULT_SECURITY_CONFIG, project_root=project_root)


@pytest.fixture
def sample_policy_yaml() -> str:
    """Return a small policy YAML for testing."""
    return """
allowed_commands:
  - ls
  - "git status"
blocked_patterns:
  - sudo
  - "DROP.*TABLE"
require_approval_for:
  - "rm "
"""


@pytest.fixture
def partial_policy_yaml() -> str:
    """Return a policy YAML that only overrides the allowlist."""
    return """
allowed_commands:
  - make
"""
